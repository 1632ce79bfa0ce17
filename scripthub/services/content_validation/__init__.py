"""Validation of submitted script versions."""

from scripthub.services.content_validation.content_validation_service import (
    content_validation_service,
    ContentValidationService,
    ValidationResult,
    truncate_filename,
)

__all__ = [
    "content_validation_service",
    "ContentValidationService",
    "ValidationResult",
    "truncate_filename",
]
