"""studylog — fixed-interval review tracker for study units."""

__version__ = "0.1.0"

from studylog.models import Review, Subject, Unit, UnitStatus
from studylog.errors import DuplicateKey, FormatError, NotFound, StudylogError, ValidationError
from studylog.app import App

__all__ = ["App", "Review", "Subject", "Unit", "UnitStatus",
           "StudylogError", "ValidationError", "DuplicateKey", "NotFound", "FormatError"]
