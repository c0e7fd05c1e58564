"""
Cancellation and deadline signal for store operations.
"""

import threading
import time
from typing import Optional


class Context:
    """
    Carries a caller's cancellation signal into a repository call.

    A context is cancelled when its stop event is set or its deadline has
    passed. Repository operations check it before talking to the store and
    again right before committing.
    """

    def __init__(
        self,
        stop_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None
    ):
        self.stop_event = stop_event or threading.Event()
        self.deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: float, stop_event: Optional[threading.Event] = None) -> 'Context':
        """Context that expires `seconds` from now."""
        return cls(stop_event=stop_event, deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self.stop_event.set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def cancelled(self) -> bool:
        return self.stop_event.is_set() or self.expired

    def reason(self) -> str:
        if self.stop_event.is_set():
            return "cancelled"
        if self.expired:
            return "deadline exceeded"
        return ""
