"""
Error kinds raised by the engine and the Result wrapper returned by the
public ProgramTracker operations.

Pure core functions raise ProgramError subclasses.  ProgramTracker catches
them at its boundary and hands them back inside a Result, so callers never
see an exception from a public operation.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class ProgramError(Exception):
    """Base class for all engine failures."""

    kind = "error"


class NotFound(ProgramError):
    """Enrollment, program, program day or template is missing."""

    kind = "not_found"


class InvalidStateTransition(ProgramError):
    """Operation is illegal in the enrollment's current status."""

    kind = "invalid_state_transition"

    def __init__(self, operation: str, status: str):
        super().__init__(f"Cannot {operation} an enrollment in status {status}")
        self.operation = operation
        self.status = status


class ProgramExhausted(ProgramError):
    """Advancing past the program's final day."""

    kind = "program_exhausted"

    def __init__(self, program_id: str, day_number: int):
        super().__init__(f"Program '{program_id}' has no day {day_number}")
        self.program_id = program_id
        self.day_number = day_number


class InvariantViolation(ProgramError):
    """An internal invariant does not hold (e.g. two active enrollments)."""

    kind = "invariant_violation"


class InvalidArgument(ProgramError):
    """Caller input out of range (e.g. a day number below 1)."""

    kind = "invalid_argument"


class StorageError(ProgramError):
    """A persistence port failed to read or write."""

    kind = "storage_error"


class ValidationError(Exception):
    """Raised when stored or typed data fails validation."""

    pass


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Success value or ProgramError.

    Exactly one of ``value`` / ``error`` is meaningful: check ``ok`` first,
    or call ``unwrap()`` to get the value and re-raise the error.
    """

    value: T | None = None
    error: ProgramError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ProgramError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
