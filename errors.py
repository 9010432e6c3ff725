# errors.py
from typing import Optional


class StringServiceError(Exception):
    """Base class for every error the string service reports to callers."""

    default_message = "String service error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class MissingInput(StringServiceError):
    default_message = "Required input is missing"


class InvalidType(StringServiceError):
    default_message = "Input has the wrong type"


class AlreadyExists(StringServiceError):
    default_message = "String already exists in the system"


class NotFound(StringServiceError):
    default_message = "String does not exist in the system"


class Unparsable(StringServiceError):
    default_message = "Unable to parse natural language query"


class ConflictingFilters(StringServiceError):
    default_message = "Query parsed but resulted in conflicting filters"
