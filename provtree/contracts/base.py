"""
Base Contracts and Shared Types

Foundational types shared by every stage of the provenance tree pipeline.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- Stages import these types but never modify them
- Errors are data first; only fatal passes raise
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum, auto


NodeId = str


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for the provenance tree pipeline.
    No silent fallbacks - every error state is enumerated.
    """
    # Structural inconsistencies (fatal for a layout pass)
    DANGLING_PARENT = auto()
    DANGLING_CHILD = auto()
    CYCLE_DETECTED = auto()
    MULTIPLE_ROOTS = auto()
    UNREACHABLE_NODE = auto()
    MISSING_ROOT = auto()

    # Rejected requests (no-op, never fatal)
    UNKNOWN_NODE = auto()
    UNKNOWN_BUNDLE = auto()
    NAVIGATION_EXHAUSTED = auto()
    INVALID_REQUEST = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be returned and inspected.
    """
    code: ErrorCode
    message: str
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            context=self.context + ((key, value),)
        )


@dataclass(frozen=True)
class Result:
    """
    Result of a user request that can be rejected.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object = None) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


class StructuralInconsistencyError(Exception):
    """
    Raised when the provenance graph violates its structural guarantees.

    Always indicates an upstream defect in the graph store. The whole
    detection/stratification pass is abandoned; callers decide whether to
    retry with a fresh snapshot.
    """

    def __init__(self, error: Error):
        super().__init__(f"{error.code.name}: {error.message}")
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code
