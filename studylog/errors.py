"""Error types raised by the studylog core."""


class StudylogError(Exception):
    """Base class for all studylog errors."""


class ValidationError(StudylogError, ValueError):
    """Input rejected before any write was attempted."""


class DuplicateKey(StudylogError):
    """A write would violate a uniqueness constraint."""

    def __init__(self, kind: str, key: tuple, message: str | None = None):
        self.kind = kind
        self.key = key
        super().__init__(message or f"Duplicate {kind} key: {key}")


class NotFound(StudylogError, LookupError):
    """A referenced record does not exist."""


class FormatError(StudylogError, ValueError):
    """A snapshot is malformed and cannot be imported."""
