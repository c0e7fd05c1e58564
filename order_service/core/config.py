"""
Service settings read from config.yaml.

The file is located through $ORDER_SERVICE_CONFIG, falling back to the
repository root. $REDIS_URL, when set, replaces `redis.url`.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ORDER_SERVICE_CONFIG"
REQUIRED_SECTIONS = ("general", "redis")

_ROOT = Path(__file__).resolve().parents[2]


class Config:
    """Process-wide settings; the first construction loads the file."""

    _instance: Optional['Config'] = None

    def __new__(cls, config_path: Optional[str] = None) -> 'Config':
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._data = instance._read(config_path)
            cls._instance = instance
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded settings; tests use this to switch files."""
        cls._instance = None

    @staticmethod
    def _read(config_path: Optional[str]) -> dict:
        path = Path(config_path or os.getenv(CONFIG_ENV_VAR) or _ROOT / "config.yaml")
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        missing = [s for s in REQUIRED_SECTIONS if s not in data]
        if missing:
            raise ValueError(f"Missing required config sections: {missing}")

        if os.getenv("REDIS_URL"):
            data['redis']['url'] = os.environ["REDIS_URL"]

        logger.info(f"Settings loaded from {path}")
        return data

    def get(self, *keys: str, default: Any = None) -> Any:
        """Walk nested sections: get('redis', 'url') reads redis.url."""
        value = self._data
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def get_int(self, *keys: str, default: int = 0) -> int:
        value = self.get(*keys)
        return default if value is None else int(value)

    def get_float(self, *keys: str, default: float = 0.0) -> float:
        value = self.get(*keys)
        return default if value is None else float(value)

    @property
    def redis_url(self) -> str:
        return self.get('redis', 'url', default='redis://localhost:6379/0')

    @property
    def log_path(self) -> Optional[Path]:
        """Rotating log file under the repository root; None logs to console only."""
        log_name = self.get('general', 'log_file')
        return _ROOT / log_name if log_name else None


def get_config() -> Config:
    return Config()
