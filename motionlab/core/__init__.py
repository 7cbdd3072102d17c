"""Cross-cutting infrastructure: domain exceptions and structured logging."""
from motionlab.core.exceptions import (
    DomainError,
    NotFoundError,
    UnknownMotionError,
    ValidationError,
)

__all__ = ["DomainError", "NotFoundError", "UnknownMotionError", "ValidationError"]
