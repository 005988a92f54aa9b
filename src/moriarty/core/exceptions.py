"""Custom exceptions for CyberMoriarty."""

from typing import Any


class MoriartyError(Exception):
    """Base exception for all CyberMoriarty errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(MoriartyError):
    """Configuration-related errors."""
    pass


class NotFoundError(MoriartyError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, record_id: str):
        super().__init__(f"{entity} not found: {record_id}", {"entity": entity, "id": record_id})
        self.entity = entity
        self.record_id = record_id


class InvalidInputError(MoriartyError):
    """Input outside documented bounds. Raised before any mutation."""
    pass


class CollaboratorError(MoriartyError):
    """An external service failed or returned unusable output."""
    pass


class CVELookupError(CollaboratorError):
    """CVE registry errors."""
    pass


class AssessmentFailedError(CollaboratorError):
    """Risk analysis failed; the assessment was moved to ``failed``."""

    def __init__(self, assessment_id: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, {"assessment_id": assessment_id, **(details or {})})
        self.assessment_id = assessment_id
