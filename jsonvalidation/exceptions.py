"""
JSON validation - exceptions.

Internal error channel for the loader, decoder and compiler. The facade turns
every one of these into a single entry of a ValidationResult, so callers only
ever see the uniform result shape.
"""

from typing import Any


class JsonValidationException(Exception):
    """Base exception for the validation core."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class SchemaNotFoundError(JsonValidationException):
    """Raised when the locator cannot find a schema identifier."""

    def __init__(self, identifier: str, reason: str | None = None):
        self.identifier = identifier
        details = {"identifier": identifier}
        if reason:
            details["reason"] = reason
        super().__init__(
            code="SCHEMA_NOT_FOUND",
            message=f"Unable to locate schema {identifier}",
            details=details,
        )


class DecodeError(JsonValidationException):
    """Raised when raw text is not a well-formed JSON document."""

    def __init__(
        self,
        reason: str,
        message: str,
        line: int | None = None,
        column: int | None = None,
        offset: int | None = None,
    ):
        self.reason = reason
        self.line = line
        self.column = column
        self.offset = offset
        if line is not None:
            message = f"{message} (line {line}, column {column}, offset {offset})"
        super().__init__(
            code="DECODE_ERROR",
            message=message,
            details={"reason": reason, "line": line, "column": column, "offset": offset},
        )

    def __str__(self) -> str:
        return f"[{self.reason}] {self.message}"


class SchemaError(JsonValidationException):
    """Raised for malformed schemas, unresolvable references and reference cycles."""

    def __init__(self, message: str, uri: str | None = None, pointer: str | None = None):
        details = {}
        if uri is not None:
            details["uri"] = uri
        if pointer is not None:
            details["pointer"] = pointer
        super().__init__(
            code="SCHEMA_ERROR",
            message=message,
            details=details or None,
        )
