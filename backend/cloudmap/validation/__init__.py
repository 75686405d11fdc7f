"""
Validation module for architecture documents.
"""

from cloudmap.validation.architecture_validator import (
    ArchitectureValidator,
    ArchitectureValidationResult,
    ValidationIssue,
    ValidationSeverity,
    validate_architecture,
)

__all__ = [
    "ArchitectureValidator",
    "ArchitectureValidationResult",
    "ValidationIssue",
    "ValidationSeverity",
    "validate_architecture",
]
