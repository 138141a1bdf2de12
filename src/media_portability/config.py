"""Importer settings read from the environment."""

import os
from dataclasses import dataclass

MAX_CONCURRENT_LIMIT = 50

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class ImporterSettings:
    """Tunables of the import core."""

    max_concurrent_imports: int = 10
    request_timeout: float = 30.0
    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate settings."""
        if not 1 <= self.max_concurrent_imports <= MAX_CONCURRENT_LIMIT:
            raise ValueError(
                f"max_concurrent_imports must be between 1 and {MAX_CONCURRENT_LIMIT}"
            )
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @classmethod
    def from_env(cls) -> "ImporterSettings":
        """Build settings from MEDIA_IMPORT_* environment variables.

        Unset variables keep their defaults.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        defaults = cls()
        return cls(
            max_concurrent_imports=_int_env(
                "MEDIA_IMPORT_MAX_CONCURRENT", defaults.max_concurrent_imports
            ),
            request_timeout=_float_env(
                "MEDIA_IMPORT_REQUEST_TIMEOUT", defaults.request_timeout
            ),
            verbose=_bool_env("MEDIA_IMPORT_VERBOSE", defaults.verbose),
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got '{raw}'")
