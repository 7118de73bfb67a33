"""Pydantic models for the validation result contract."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ValidationError(BaseModel):
    """One violation: where it happened, what went wrong, which keyword failed."""

    model_config = ConfigDict(frozen=True)

    pointer: str | None = None
    property: str | None = None
    message: str
    constraint: str | None = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    valid: bool
    errors: list[ValidationError] = Field(default_factory=list)
    value: Any = None

    @model_validator(mode="after")
    def _errors_match_validity(self) -> ValidationResult:
        if self.valid and self.errors:
            raise ValueError("a valid result cannot carry errors")
        if not self.valid and not self.errors:
            raise ValueError("an invalid result needs at least one error")
        return self

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def success(cls, value: Any = None) -> ValidationResult:
        return cls(valid=True, errors=[], value=value)

    @classmethod
    def failure(cls, errors: list[ValidationError]) -> ValidationResult:
        return cls(valid=False, errors=list(errors), value=None)

    @classmethod
    def from_message(cls, message: str) -> ValidationResult:
        """A failure carrying one error with no pointer or constraint."""
        return cls.failure([ValidationError(message=message)])

    def messages(self) -> list[str]:
        return [error.message for error in self.errors]
