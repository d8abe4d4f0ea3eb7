"""
Process configuration for the classroom service.

Sources, later ones override earlier ones:
1) `env.example` (committed defaults)
2) `env.local` (optional, MUST NOT be committed)
3) System environment variables
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger

_TRUE_VALUES = {"1", "true", "yes", "on"}


class EnvironConfig:
    """Singleton mapping of configuration keys to raw string values, with typed getters."""

    _instance = None
    _initialized = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self, root: Path | None = None):
        if not self._initialized:
            self._root = root or Path(__file__).parent.parent.parent
            self._values: dict[str, str | None] = {}
            self._load()
            EnvironConfig._initialized = True

    def _load(self):
        for name in ("env.example", "env.local"):
            path = self._root / name
            if path.exists():
                self._values.update(dotenv_values(path))
                logger.info("Loaded configuration from {}", path)

        self._values.update(os.environ)

    def __getitem__(self, key: str) -> str:
        value = self._values.get(key)
        if value is None:
            raise KeyError(f"Configuration key '{key}' not found")
        return value

    def __contains__(self, key: str) -> bool:
        return self._values.get(key) is not None

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self._values.get(key)
        return default if value is None else value

    def get_str(self, key: str, default: str = "") -> str:
        """Stripped value; blank counts as unset."""
        return (self.get(key) or "").strip() or default

    def get_int(self, key: str, default: int) -> int:
        raw = self.get_str(key)
        return int(raw) if raw else default

    def get_float(self, key: str, default: float) -> float:
        raw = self.get_str(key)
        return float(raw) if raw else default

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = self.get_str(key)
        return raw.lower() in _TRUE_VALUES if raw else default

    def get_list(self, key: str, default: list[str] | None = None) -> list[str]:
        """Comma-separated value as a list, empty items dropped."""
        items = [item.strip() for item in self.get_str(key).split(",") if item.strip()]
        return items or list(default or [])

    def reload(self):
        """Re-read the env files and the process environment."""
        self._values.clear()
        self._load()
        logger.info("Configuration reloaded")


# Global configuration instance
config = EnvironConfig()
