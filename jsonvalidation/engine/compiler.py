"""
Schema compiler.

Walks a schema document once and produces the SchemaNode graph the validator
runs against.

Demonstrates:
- `$ref` resolution against the current base URI, inside the same document
  (`#/definitions/x`, `#anchor`) or in other documents via the SchemaLoader
- Cycle detection for references that never descend into the instance
- Recursive schemas represented by sharing nodes instead of copying them
- Malformed keyword values reported as SchemaError
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator
from urllib.parse import unquote, urldefrag, urljoin, urlsplit

import jsonschema
from jsonschema import Draft4Validator, Draft6Validator, Draft7Validator

from jsonvalidation.engine import formats
from jsonvalidation.engine import pointer as json_pointer
from jsonvalidation.engine.node import SchemaNode
from jsonvalidation.engine.patterns import compile_pattern
from jsonvalidation.exceptions import SchemaError
from jsonvalidation.schemas.drafts import (
    ANNOTATIONS,
    DRAFT_4,
    DRAFT_6,
    DRAFT_7,
    JSON_TYPES,
    KEYWORDS,
    SUPPORTED_DRAFTS,
    draft_from_uri,
    id_keyword,
)
from jsonvalidation.services.loader import SchemaLoader

logger = logging.getLogger(__name__)

_META_VALIDATORS = {
    DRAFT_4: Draft4Validator,
    DRAFT_6: Draft6Validator,
    DRAFT_7: Draft7Validator,
}

# Keywords whose subschemas apply to a child of the instance.
_SCHEMA_DESCENDING = ("items", "additionalItems", "contains", "additionalProperties", "propertyNames")
_MAP_DESCENDING = ("properties", "patternProperties")
# Keywords whose subschemas apply to the same instance.
_SCHEMA_IN_PLACE = ("not", "if", "then", "else")
_LIST_IN_PLACE = ("allOf", "anyOf", "oneOf")

_Chain = tuple[tuple[str, str], ...]


def _join(base: str, reference: str) -> str:
    """Resolve `reference` against `base`, including bases with non-hierarchical schemes."""
    if reference.startswith("#"):
        return urldefrag(base)[0] + reference
    return urljoin(base, reference)


@dataclass
class _Document:
    """A loaded schema document and the embedded ids found in it."""

    uri: str
    root: Any
    draft: int
    # absolute URI (with or without fragment) -> pointer inside this document
    ids: dict[str, str] = field(default_factory=dict)


def _subschemas(schema: Any) -> Iterator[tuple[str, Any]]:
    """Yield (relative pointer, subschema) for every nested schema position."""
    if not isinstance(schema, dict):
        return
    for keyword in _SCHEMA_DESCENDING + _SCHEMA_IN_PLACE:
        if isinstance(schema.get(keyword), (dict, bool)):
            yield json_pointer.join("", keyword), schema[keyword]
    items = schema.get("items")
    for keyword in ("items",) + _LIST_IN_PLACE:
        value = items if keyword == "items" else schema.get(keyword)
        if isinstance(value, list):
            for index, sub in enumerate(value):
                yield f"/{keyword}/{index}", sub
    for keyword in _MAP_DESCENDING + ("definitions", "dependencies"):
        value = schema.get(keyword)
        if isinstance(value, dict):
            for name, sub in value.items():
                if isinstance(sub, (dict, bool)):
                    yield f"/{keyword}/{json_pointer.escape(name)}", sub


class SchemaCompiler:
    """
    Builds SchemaNode graphs.

    Usage:
        compiler = SchemaCompiler(SchemaLoader(FileLocator(["schemas"])))
        node = compiler.compile_uri("file:///srv/schemas/order.json")
    """

    def __init__(
        self,
        loader: SchemaLoader | None = None,
        default_draft: int = DRAFT_7,
        check_schemas: bool = True,
    ):
        if default_draft not in SUPPORTED_DRAFTS:
            raise ValueError(f"Unsupported default draft: {default_draft}")
        self.loader = loader or SchemaLoader()
        self.default_draft = default_draft
        self.check_schemas = check_schemas

    def compile_uri(self, uri: str) -> SchemaNode:
        """Compile the schema stored at `uri`; a fragment selects a subschema."""
        return _Compilation(self).compile_reference(uri)

    def compile(self, document: Any, base_uri: str = "urn:jsonvalidation:inline") -> SchemaNode:
        """Compile an in-memory schema document."""
        compilation = _Compilation(self)
        compilation.add_document(base_uri, document)
        return compilation.compile_reference(base_uri)


class _Compilation:
    """State of one compile call: documents seen and nodes built so far."""

    def __init__(self, compiler: SchemaCompiler):
        self.compiler = compiler
        self.documents: dict[str, _Document] = {}
        self.nodes: dict[tuple[str, str], SchemaNode] = {}

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_document(self, uri: str, root: Any) -> _Document:
        uri = urldefrag(uri)[0]
        draft = self.compiler.default_draft
        if isinstance(root, dict):
            draft = draft_from_uri(root.get("$schema"), self.compiler.default_draft)
        if self.compiler.check_schemas:
            self._check_against_metaschema(uri, root, draft)

        document = _Document(uri=uri, root=root, draft=draft)
        self._index_ids(document, root, uri, "")
        self.documents[uri] = document
        logger.debug("Indexed schema document %s (draft-%02d)", uri, draft)
        return document

    def _document(self, uri: str) -> _Document:
        if uri in self.documents:
            return self.documents[uri]
        if not urlsplit(uri).scheme and not self.compiler.loader.is_registered(uri):
            # relative to a base such as urn:jsonvalidation:inline that has no path
            raise SchemaError(
                f"Cannot resolve relative reference '{uri}': the referring schema has no base URI",
                uri=uri,
            )
        return self.add_document(uri, self.compiler.loader.load(uri))

    def _check_against_metaschema(self, uri: str, root: Any, draft: int) -> None:
        try:
            _META_VALIDATORS[draft].check_schema(
                root, format_checker=formats.schema_checker_for(draft)
            )
        except jsonschema.exceptions.SchemaError as exc:
            location = "/" + "/".join(str(p) for p in exc.path) if exc.path else ""
            raise SchemaError(
                f"Schema {uri} is invalid at '{location}': {exc.message}", uri=uri, pointer=location
            ) from exc

    def _index_ids(self, document: _Document, schema: Any, base: str, pointer: str) -> None:
        if not isinstance(schema, dict):
            return
        schema_id = schema.get(id_keyword(document.draft))
        if isinstance(schema_id, str) and "$ref" not in schema:
            base = _join(base, schema_id)
            document.ids.setdefault(base, pointer)
        for suffix, sub in _subschemas(schema):
            self._index_ids(document, sub, base, pointer + suffix)

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    def compile_reference(self, reference: str, chain: _Chain = ()) -> SchemaNode:
        document, pointer = self._resolve(reference)
        target = self._lookup(document, pointer, reference)
        base = self._base_uri(document, pointer)
        return self._compile(document, pointer, target, base, chain)

    def _resolve(self, reference: str) -> tuple[_Document, str]:
        uri, fragment = urldefrag(reference)
        for candidate in (reference, uri):
            for document in self.documents.values():
                if candidate in document.ids:
                    pointer = document.ids[candidate]
                    if candidate == reference:
                        return document, pointer
                    return document, pointer + self._fragment_pointer(document, uri, fragment)
        document = self._document(uri)
        return document, self._fragment_pointer(document, uri, fragment)

    def _fragment_pointer(self, document: _Document, uri: str, fragment: str) -> str:
        fragment = unquote(fragment)
        if not fragment or fragment.startswith("/"):
            return fragment
        anchor = document.ids.get(f"{uri}#{fragment}")
        if anchor is None:
            raise SchemaError(f"Unresolvable reference: no anchor '#{fragment}' in {uri}", uri=uri)
        return anchor

    @staticmethod
    def _lookup(document: _Document, pointer: str, reference: str) -> Any:
        target = document.root
        try:
            for token in json_pointer.split(pointer):
                if isinstance(target, list):
                    target = target[int(token)]
                elif isinstance(target, dict):
                    target = target[token]
                else:
                    raise KeyError(token)
        except (KeyError, IndexError, ValueError) as exc:
            raise SchemaError(
                f"Unresolvable reference '{reference}'", uri=document.uri, pointer=pointer
            ) from exc
        return target

    def _base_uri(self, document: _Document, pointer: str) -> str:
        """Base URI inherited by the schema at `pointer` from its enclosing ids."""
        base = document.uri
        schema = document.root
        keyword = id_keyword(document.draft)
        tokens = json_pointer.split(pointer)
        for token in tokens:
            if isinstance(schema, dict) and isinstance(schema.get(keyword), str) and "$ref" not in schema:
                base = _join(base, schema[keyword])
            schema = schema[int(token)] if isinstance(schema, list) else schema.get(token)
        return base

    # ------------------------------------------------------------------
    # Node construction
    # ------------------------------------------------------------------

    def _compile(
        self, document: _Document, pointer: str, schema: Any, base: str, chain: _Chain
    ) -> SchemaNode:
        key = (document.uri, pointer)
        if key in chain:
            path = " -> ".join(f"{uri}#{ptr}" for uri, ptr in chain + (key,))
            raise SchemaError(f"Reference cycle detected: {path}", uri=document.uri, pointer=pointer)
        existing = self.nodes.get(key)
        if existing is not None:
            return existing
        chain = chain + (key,)

        if isinstance(schema, bool):
            node = SchemaNode(uri=base, pointer=pointer, draft=document.draft, always=schema)
            self.nodes[key] = node
            return node
        if not isinstance(schema, dict):
            raise SchemaError(
                f"Expected a schema object at '{pointer}', found {type(schema).__name__}",
                uri=document.uri,
                pointer=pointer,
            )

        if "$ref" in schema:
            reference = schema["$ref"]
            if not isinstance(reference, str):
                raise SchemaError("$ref must be a string", uri=document.uri, pointer=pointer)
            node = self.compile_reference(_join(base, reference), chain)
            self.nodes[key] = node
            return node

        schema_id = schema.get(id_keyword(document.draft))
        if isinstance(schema_id, str):
            base = _join(base, schema_id)

        node = SchemaNode(uri=base, pointer=pointer, draft=document.draft)
        self.nodes[key] = node
        _NodeBuilder(self, document, pointer, schema, base, chain).build(node)
        return node

    def child(
        self, document: _Document, pointer: str, schema: Any, base: str, chain: _Chain
    ) -> SchemaNode:
        return self._compile(document, pointer, schema, base, chain)


class _NodeBuilder:
    """Copies recognised keywords of one schema object onto a SchemaNode."""

    def __init__(
        self,
        compilation: _Compilation,
        document: _Document,
        pointer: str,
        schema: dict[str, Any],
        base: str,
        chain: _Chain,
    ):
        self.compilation = compilation
        self.document = document
        self.pointer = pointer
        self.schema = schema
        self.base = base
        self.chain = chain
        self.keywords = KEYWORDS[document.draft]

    def build(self, node: SchemaNode) -> None:
        for keyword, value in self.schema.items():
            if keyword not in self.keywords and keyword not in ANNOTATIONS:
                node.extras[keyword] = value

        self._build_type(node)
        self._build_values(node)
        self._build_numeric(node)
        self._build_string(node)
        self._build_array(node)
        self._build_object(node)
        self._build_combinators(node)

    # -- helpers --------------------------------------------------------

    def _has(self, keyword: str) -> bool:
        return keyword in self.keywords and keyword in self.schema

    def _fail(self, keyword: str, problem: str) -> SchemaError:
        return SchemaError(
            f"Invalid '{keyword}' at '#{self.pointer}': {problem}",
            uri=self.document.uri,
            pointer=json_pointer.join(self.pointer, keyword),
        )

    def _number(self, keyword: str) -> int | float | None:
        if not self._has(keyword):
            return None
        value = self.schema[keyword]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._fail(keyword, "expected a number")
        return value

    def _count(self, keyword: str) -> int | None:
        value = self._number(keyword)
        if value is None:
            return None
        if value < 0 or (isinstance(value, float) and not value.is_integer()):
            raise self._fail(keyword, "expected a non-negative integer")
        return int(value)

    def _pattern(self, keyword: str, source: Any) -> re.Pattern:
        if not isinstance(source, str):
            raise self._fail(keyword, "expected a regular expression string")
        try:
            return compile_pattern(source)
        except re.error as exc:
            raise self._fail(keyword, f"invalid regular expression {source!r} ({exc})") from exc

    def _sub(self, suffix: str, schema: Any, in_place: bool) -> SchemaNode:
        chain = self.chain if in_place else ()
        return self.compilation.child(
            self.document, self.pointer + suffix, schema, self.base, chain
        )

    def _sub_keyword(self, keyword: str, in_place: bool) -> SchemaNode | None:
        if not self._has(keyword):
            return None
        return self._sub(json_pointer.join("", keyword), self.schema[keyword], in_place)

    def _sub_list(self, keyword: str, in_place: bool) -> tuple[SchemaNode, ...]:
        value = self.schema[keyword]
        if not isinstance(value, list) or not value:
            raise self._fail(keyword, "expected a non-empty array of schemas")
        return tuple(
            self._sub(f"/{keyword}/{index}", sub, in_place) for index, sub in enumerate(value)
        )

    def _sub_map(self, keyword: str) -> dict[str, Any]:
        value = self.schema[keyword]
        if not isinstance(value, dict):
            raise self._fail(keyword, "expected an object")
        return value

    def _names(self, keyword: str, value: Any) -> tuple[str, ...]:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise self._fail(keyword, "expected an array of strings")
        return tuple(value)

    # -- keyword groups -------------------------------------------------

    def _build_type(self, node: SchemaNode) -> None:
        if not self._has("type"):
            return
        value = self.schema["type"]
        names = [value] if isinstance(value, str) else value
        if not isinstance(names, list) or not names:
            raise self._fail("type", "expected a type name or a non-empty array of type names")
        for name in names:
            if name not in JSON_TYPES:
                raise self._fail("type", f"unknown type {name!r}")
        node.types = tuple(names)

    def _build_values(self, node: SchemaNode) -> None:
        if self._has("enum"):
            if not isinstance(self.schema["enum"], list):
                raise self._fail("enum", "expected an array")
            node.enum = tuple(self.schema["enum"])
        if self._has("const"):
            node.const = self.schema["const"]

    def _build_numeric(self, node: SchemaNode) -> None:
        node.multiple_of = self._number("multipleOf")
        if node.multiple_of is not None and node.multiple_of <= 0:
            raise self._fail("multipleOf", "expected a number greater than 0")
        node.minimum = self._number("minimum")
        node.maximum = self._number("maximum")

        for keyword, bound in (("exclusiveMinimum", "minimum"), ("exclusiveMaximum", "maximum")):
            if not self._has(keyword):
                continue
            value = self.schema[keyword]
            attr = "exclusive_" + bound
            if isinstance(value, bool):
                # draft-04 form: a flag turning the sibling bound exclusive
                if value and getattr(node, bound) is not None:
                    setattr(node, attr, getattr(node, bound))
                    setattr(node, bound, None)
            else:
                setattr(node, attr, self._number(keyword))

    def _build_string(self, node: SchemaNode) -> None:
        node.min_length = self._count("minLength")
        node.max_length = self._count("maxLength")
        if self._has("pattern"):
            node.pattern = self._pattern("pattern", self.schema["pattern"])
            node.pattern_source = self.schema["pattern"]
        if self._has("format"):
            if not isinstance(self.schema["format"], str):
                raise self._fail("format", "expected a string")
            node.format = self.schema["format"]

    def _build_array(self, node: SchemaNode) -> None:
        if self._has("items"):
            if isinstance(self.schema["items"], list):
                node.items_tuple = tuple(
                    self._sub(f"/items/{index}", sub, in_place=False)
                    for index, sub in enumerate(self.schema["items"])
                )
            else:
                node.items = self._sub_keyword("items", in_place=False)
        node.additional_items = self._sub_keyword("additionalItems", in_place=False)
        node.contains = self._sub_keyword("contains", in_place=False)
        node.min_items = self._count("minItems")
        node.max_items = self._count("maxItems")
        if self._has("uniqueItems"):
            if not isinstance(self.schema["uniqueItems"], bool):
                raise self._fail("uniqueItems", "expected a boolean")
            node.unique_items = self.schema["uniqueItems"]

    def _build_object(self, node: SchemaNode) -> None:
        if self._has("required"):
            node.required = self._names("required", self.schema["required"])
        if self._has("properties"):
            node.properties = {
                name: self._sub(f"/properties/{json_pointer.escape(name)}", sub, in_place=False)
                for name, sub in self._sub_map("properties").items()
            }
        if self._has("patternProperties"):
            node.pattern_properties = tuple(
                (
                    self._pattern("patternProperties", source),
                    self._sub(
                        f"/patternProperties/{json_pointer.escape(source)}", sub, in_place=False
                    ),
                )
                for source, sub in self._sub_map("patternProperties").items()
            )
        node.additional_properties = self._sub_keyword("additionalProperties", in_place=False)
        node.property_names = self._sub_keyword("propertyNames", in_place=False)
        node.min_properties = self._count("minProperties")
        node.max_properties = self._count("maxProperties")

        if self._has("dependencies"):
            for name, dependency in self._sub_map("dependencies").items():
                if isinstance(dependency, list):
                    node.dependencies[name] = self._names("dependencies", dependency)
                else:
                    node.dependencies[name] = self._sub(
                        f"/dependencies/{json_pointer.escape(name)}", dependency, in_place=True
                    )

    def _build_combinators(self, node: SchemaNode) -> None:
        if self._has("allOf"):
            node.all_of = self._sub_list("allOf", in_place=True)
        if self._has("anyOf"):
            node.any_of = self._sub_list("anyOf", in_place=True)
        if self._has("oneOf"):
            node.one_of = self._sub_list("oneOf", in_place=True)
        node.not_ = self._sub_keyword("not", in_place=True)
        node.if_ = self._sub_keyword("if", in_place=True)
        if node.if_ is not None:
            node.then = self._sub_keyword("then", in_place=True)
            node.else_ = self._sub_keyword("else", in_place=True)
