"""Core infrastructure for CyberMoriarty."""

from moriarty.core.config import Settings, get_settings
from moriarty.core.exceptions import (
    AssessmentFailedError,
    CollaboratorError,
    ConfigurationError,
    CVELookupError,
    InvalidInputError,
    MoriartyError,
    NotFoundError,
)
from moriarty.core.logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
    "MoriartyError",
    "ConfigurationError",
    "NotFoundError",
    "InvalidInputError",
    "CollaboratorError",
    "CVELookupError",
    "AssessmentFailedError",
]
