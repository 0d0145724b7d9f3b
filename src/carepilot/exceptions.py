"""
CarePilot Exception Hierarchy

Domain-specific exceptions for the compliance and placement-decision engine.
All exceptions include error codes for tracking and logging.

Exception codes follow the pattern: CP_<CATEGORY>_<SPECIFIC>

Callers map these onto their own transport:
- ValidationError / StateError: client error, never retried
- ConflictError: invariant violation (HTTP 409 equivalent)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class CarePilotError(Exception):
    """
    Base exception for all CarePilot errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (CP_*)
        details: Offending values and additional context
        child_id: Associated child ID if applicable
    """
    message: str
    code: str = "CP_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    child_id: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.child_id:
            parts.append(f"(child: {self.child_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/API responses."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.child_id:
            result["child_id"] = self.child_id
        return result


# =============================================================================
# Validation Errors
# =============================================================================

@dataclass
class ValidationError(CarePilotError):
    """Invalid (jurisdiction, legal status) combination or malformed input."""
    code: str = "CP_VALIDATION_ERROR"


# =============================================================================
# Invariant / Concurrency Errors
# =============================================================================

@dataclass
class ConflictError(CarePilotError):
    """An invariant would be violated (duplicate open episode, second active placement, stale write)."""
    code: str = "CP_CONFLICT"


# =============================================================================
# State Machine Errors
# =============================================================================

@dataclass
class StateError(CarePilotError):
    """Requested transition is not allowed from the current state."""
    code: str = "CP_INVALID_STATE_TRANSITION"


@dataclass
class NotFoundError(CarePilotError):
    """Referenced record does not exist in the store."""
    code: str = "CP_NOT_FOUND"


# =============================================================================
# Weights Pack Errors
# =============================================================================

@dataclass
class WeightsPackLoadError(CarePilotError):
    """Failed to read a weights pack file."""
    code: str = "CP_WEIGHTS_PACK_LOAD_ERROR"


@dataclass
class WeightsPackValidationError(CarePilotError):
    """Weights pack schema validation failed."""
    code: str = "CP_WEIGHTS_PACK_VALIDATION_ERROR"


@dataclass
class WeightsPackVersionMismatch(CarePilotError):
    """Weights pack schema version doesn't match the supported version."""
    code: str = "CP_WEIGHTS_PACK_VERSION_MISMATCH"
