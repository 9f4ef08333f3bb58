"""Result values returned by lifecycle predicates, mutators and validation."""

from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class TransitionCheck(BaseModel):
    """Outcome of a `can_*` predicate."""

    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def ok(cls) -> "TransitionCheck":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "TransitionCheck":
        return cls(allowed=False, reason=reason)


class TransitionResult(BaseModel, Generic[T]):
    """Outcome of a lifecycle mutator.

    On success `value` holds the new snapshot; on failure it is None and
    `reason` explains why the transition was rejected.
    """

    ok: bool
    reason: Optional[str] = None
    value: Optional[T] = None

    @classmethod
    def success(cls, value: T) -> "TransitionResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: Optional[str]) -> "TransitionResult[T]":
        return cls(ok=False, reason=reason)


class FieldError(BaseModel):
    field: str
    message: str


class ValidationResult(BaseModel):
    valid: bool
    errors: List[FieldError] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[FieldError]) -> "ValidationResult":
        return cls(valid=not errors, errors=errors)
