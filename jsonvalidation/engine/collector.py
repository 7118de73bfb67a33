"""Accumulates validation failures for one validation call."""

from __future__ import annotations

from jsonvalidation.engine import pointer as json_pointer
from jsonvalidation.schemas.results import ValidationError


class ErrorCollector:
    """
    Ordered list of ValidationError entries.

    One collector belongs to exactly one top-level call. Combinators that only
    need a pass/fail answer from a subschema run it against a fresh collector
    and throw that away.
    """

    def __init__(self):
        self._errors: list[ValidationError] = []

    def add(self, pointer: str | None, message: str, constraint: str | None = None) -> None:
        self._errors.append(
            ValidationError(
                pointer=pointer,
                property=json_pointer.to_property(pointer),
                message=message,
                constraint=constraint,
            )
        )

    def extend(self, errors: list[ValidationError]) -> None:
        self._errors.extend(errors)

    def reset(self) -> None:
        self._errors.clear()

    @property
    def errors(self) -> list[ValidationError]:
        return list(self._errors)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    def __len__(self) -> int:
        return len(self._errors)
