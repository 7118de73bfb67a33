"""
JSON Schema validation service.

Demonstrates:
- Schema-driven validation of raw JSON text against a located schema
- Collecting all errors rather than failing on the first one
- One result shape for every failure class: schema lookup, malformed input,
  broken schema and constraint violations
"""

from __future__ import annotations

import logging
from typing import Any

from jsonvalidation.config import settings
from jsonvalidation.engine.compiler import SchemaCompiler
from jsonvalidation.engine.node import SchemaNode
from jsonvalidation.engine.validator import SchemaValidator
from jsonvalidation.exceptions import DecodeError, SchemaError, SchemaNotFoundError
from jsonvalidation.schemas.drafts import DRAFT_7
from jsonvalidation.schemas.results import ValidationResult
from jsonvalidation.services.cache import SchemaCache
from jsonvalidation.services.decoder import decode
from jsonvalidation.services.loader import FileLocator, SchemaLoader, SchemaLocator

logger = logging.getLogger(__name__)

_TOO_DEEP = "Document is nested too deeply to validate"


class JsonValidator:
    """
    Validates JSON text against schemas found through a locator.

    Usage:
        validator = JsonValidator(FileLocator(["schemas"]))
        result = validator.validate('{"id": 1}', "order.json")
        if not result.valid:
            for error in result.errors:
                print(error.pointer, error.constraint, error.message)

    The validator holds no per-call state, so one instance can serve
    concurrent callers. Compiled schemas are cached by location.
    """

    def __init__(
        self,
        locator: SchemaLocator | None = None,
        *,
        loader: SchemaLoader | None = None,
        cache: SchemaCache | None = None,
        use_cache: bool = True,
        check_schemas: bool = True,
        validate_formats: bool = True,
        default_draft: int = DRAFT_7,
    ):
        self.loader = loader or SchemaLoader(locator)
        self.compiler = SchemaCompiler(self.loader, default_draft, check_schemas)
        self.engine = SchemaValidator(validate_formats)
        if cache is None and use_cache:
            cache = SchemaCache()
        self.cache = cache

    def validate(self, json_text: str | bytes, schema_ref: str, loose: bool = False) -> ValidationResult:
        """
        Validate `json_text` against the schema identified by `schema_ref`.

        Returns a valid result carrying the decoded document, or an invalid
        result with no value and at least one error. With `loose=True` the
        document is decoded a second time into plain dicts and lists.
        """
        try:
            uri = self.loader.locate(schema_ref)
        except SchemaNotFoundError as exc:
            return ValidationResult.from_message(exc.message)

        try:
            value = decode(json_text)
        except DecodeError as exc:
            logger.info("Rejected malformed JSON for schema %s: %s", schema_ref, exc)
            return ValidationResult.from_message(str(exc))

        try:
            node = self.compile(uri)
        except SchemaError as exc:
            logger.warning("Schema %s could not be compiled: %s", schema_ref, exc.message)
            return ValidationResult.from_message(exc.message)
        except RecursionError:
            logger.warning("Schema %s is nested too deeply to compile", schema_ref)
            return ValidationResult.from_message(
                f"Schema {schema_ref} is nested too deeply to compile"
            )

        try:
            errors = self.engine.validate(value, node)
        except RecursionError:
            return ValidationResult.from_message(_TOO_DEEP)
        if errors:
            logger.info("Document failed schema %s with %d error(s)", schema_ref, len(errors))
            return ValidationResult.failure(errors)

        if loose:
            # wasteful for large documents: the text is parsed twice
            value = decode(json_text, loose=True)
        return ValidationResult.success(value)

    def validate_body(
        self,
        body: str | bytes | None,
        schema_ref: str,
        empty_is_valid: bool = False,
        loose: bool = False,
    ) -> ValidationResult:
        """
        Validate a raw message body. An empty body is accepted without a
        value when `empty_is_valid` is set, otherwise it is a decode error.
        """
        if empty_is_valid and not body:
            return ValidationResult.success(None)
        return self.validate(body or "", schema_ref, loose=loose)

    def validate_instance(self, instance: Any, schema: Any) -> ValidationResult:
        """Validate an already-decoded value against an in-memory schema document."""
        try:
            node = self.compiler.compile(schema)
        except SchemaError as exc:
            return ValidationResult.from_message(exc.message)
        except RecursionError:
            return ValidationResult.from_message("Schema is nested too deeply to compile")

        try:
            errors = self.engine.validate(instance, node)
        except RecursionError:
            return ValidationResult.from_message(_TOO_DEEP)
        if errors:
            return ValidationResult.failure(errors)
        return ValidationResult.success(instance)

    def compile(self, uri: str) -> SchemaNode:
        """Compiled schema for `uri`, built once per location when caching is on."""
        if self.cache is None:
            return self._build(uri)
        return self.cache.get_or_build(uri, lambda: self._build(uri))

    def _build(self, uri: str) -> SchemaNode:
        node = self.compiler.compile_uri(uri)
        logger.info("Compiled schema %s", uri)
        return node


def build_validator(locator: SchemaLocator | None = None) -> JsonValidator:
    """JsonValidator configured from the environment (see jsonvalidation.config)."""
    return JsonValidator(
        locator or FileLocator(settings.SCHEMA_PATHS),
        use_cache=settings.SCHEMA_CACHE_ENABLED,
        check_schemas=settings.CHECK_SCHEMAS,
        validate_formats=settings.VALIDATE_FORMATS,
        default_draft=settings.DEFAULT_DRAFT,
    )


_inline = JsonValidator(use_cache=False)


def validate_against_schema(data: Any, schema: dict[str, Any]) -> list[str]:
    """
    Validate a decoded value against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    return _inline.validate_instance(data, schema).messages()
