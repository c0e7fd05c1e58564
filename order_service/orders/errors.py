"""
Order repository errors.

Every error records the operation and the store key it concerns so the
API layer can log and map it without parsing messages.
"""

from typing import Optional


class OrderStoreError(Exception):
    """Base class for repository failures."""

    retryable = False

    def __init__(self, operation: str, key: Optional[str] = None, detail: str = ""):
        self.operation = operation
        self.key = key
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        where = f"{self.operation} {self.key}" if self.key else self.operation
        message = f"{where}: {self.describe()}"
        if self.detail:
            message += f": {self.detail}"
        return message

    def describe(self) -> str:
        return "order store error"


class AlreadyExists(OrderStoreError):
    """An order with the same id is already stored."""

    def describe(self) -> str:
        return "order already exists"


class NotFound(OrderStoreError):
    """No order is stored under the key."""

    def describe(self) -> str:
        return "order does not exist"


class EncodingError(OrderStoreError):
    """The order could not be serialized."""

    def describe(self) -> str:
        return "failed to encode order"


class CorruptRecord(OrderStoreError):
    """A stored value is missing or is not a valid order."""

    def describe(self) -> str:
        return "corrupt order record"


class StoreUnavailable(OrderStoreError):
    """The backing store could not be reached or rejected the command."""

    retryable = True

    def describe(self) -> str:
        return "store unavailable"


class Cancelled(OrderStoreError):
    """The caller cancelled the operation or its deadline passed."""

    def describe(self) -> str:
        return "operation cancelled"
