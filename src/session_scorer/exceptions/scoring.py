"""Ingestion, store and direct-scoring exceptions."""

from pathlib import Path
from typing import Union

from .base import SessionScorerError


class IngestionError(SessionScorerError):
    """Base class for errors while turning a session file into a score."""

    pass


class FileAccessError(IngestionError):
    """Raised when a session file cannot be opened or read."""

    def __init__(self, filepath: Union[str, Path], reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class StoreError(SessionScorerError):
    """Raised when the persisted score report cannot be read or written."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            f"Score store unavailable: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class ValidationError(SessionScorerError):
    """Raised when direct-scoring input is rejected before evaluation."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid {field}: {reason}", details={"field": field})
        self.field = field
        self.reason = reason
