"""Exception hierarchy for Session Scorer."""

from .base import SessionScorerError
from .config import ConfigurationError, InvalidConfigError, InvalidPathError
from .scoring import FileAccessError, IngestionError, StoreError, ValidationError

__all__ = [
    "SessionScorerError",
    "ConfigurationError",
    "InvalidConfigError",
    "InvalidPathError",
    "IngestionError",
    "FileAccessError",
    "StoreError",
    "ValidationError",
]
