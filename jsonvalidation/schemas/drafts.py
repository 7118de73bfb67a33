"""
JSON Schema draft metadata.

Maps `$schema` URIs to draft numbers and lists the keywords each draft
understands. Keywords outside these sets are kept on the compiled node but
never enforced.
"""

DRAFT_4 = 4
DRAFT_6 = 6
DRAFT_7 = 7

SUPPORTED_DRAFTS = (DRAFT_4, DRAFT_6, DRAFT_7)

SCHEMA_URIS: dict[str, int] = {
    "http://json-schema.org/draft-04/schema": DRAFT_4,
    "http://json-schema.org/draft-06/schema": DRAFT_6,
    "http://json-schema.org/draft-07/schema": DRAFT_7,
}

JSON_TYPES = frozenset(
    {"null", "boolean", "integer", "number", "string", "array", "object"}
)

# Annotation-only keywords: valid anywhere, never enforced.
ANNOTATIONS = frozenset(
    {
        "$schema",
        "$id",
        "id",
        "$comment",
        "title",
        "description",
        "default",
        "examples",
        "readOnly",
        "writeOnly",
        "definitions",
        "contentMediaType",
        "contentEncoding",
    }
)

_DRAFT_4_KEYWORDS = frozenset(
    {
        "$ref",
        "type",
        "enum",
        "multipleOf",
        "maximum",
        "exclusiveMaximum",
        "minimum",
        "exclusiveMinimum",
        "maxLength",
        "minLength",
        "pattern",
        "format",
        "items",
        "additionalItems",
        "maxItems",
        "minItems",
        "uniqueItems",
        "maxProperties",
        "minProperties",
        "required",
        "properties",
        "patternProperties",
        "additionalProperties",
        "dependencies",
        "allOf",
        "anyOf",
        "oneOf",
        "not",
    }
)

_DRAFT_6_KEYWORDS = _DRAFT_4_KEYWORDS | {"const", "contains", "propertyNames"}

_DRAFT_7_KEYWORDS = _DRAFT_6_KEYWORDS | {"if", "then", "else"}

KEYWORDS: dict[int, frozenset] = {
    DRAFT_4: _DRAFT_4_KEYWORDS,
    DRAFT_6: _DRAFT_6_KEYWORDS,
    DRAFT_7: _DRAFT_7_KEYWORDS,
}


def draft_from_uri(uri: str | None, default: int = DRAFT_7) -> int:
    """Return the draft number named by a `$schema` value, or `default`."""
    if not isinstance(uri, str):
        return default
    return SCHEMA_URIS.get(uri.rstrip("#"), default)


def id_keyword(draft: int) -> str:
    return "id" if draft == DRAFT_4 else "$id"
