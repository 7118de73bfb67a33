"""
Compiled schema nodes.

A SchemaNode is the typed form of one schema (sub)document. Nodes are built
once by the compiler and then only read: the validator walks them without
looking at the raw schema JSON again. Children are shared references, so a
recursive schema (a tree whose items point back at the root) is a graph,
not an infinitely deep copy.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

_MISSING = object()


@dataclass(eq=False)
class SchemaNode:
    """Constraint set of a single schema location."""

    uri: str
    pointer: str
    draft: int

    # True/False for boolean schemas, None for object schemas
    always: bool | None = None

    types: tuple[str, ...] | None = None
    enum: tuple[Any, ...] | None = None
    const: Any = _MISSING

    multiple_of: int | float | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = None
    exclusive_maximum: int | float | None = None

    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern | None = None
    pattern_source: str | None = None
    format: str | None = None

    items: SchemaNode | None = None
    items_tuple: tuple[SchemaNode, ...] | None = None
    additional_items: SchemaNode | None = None
    contains: SchemaNode | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False

    required: tuple[str, ...] = ()
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    pattern_properties: tuple[tuple[re.Pattern, SchemaNode], ...] = ()
    additional_properties: SchemaNode | None = None
    property_names: SchemaNode | None = None
    dependencies: dict[str, tuple[str, ...] | SchemaNode] = field(default_factory=dict)
    min_properties: int | None = None
    max_properties: int | None = None

    all_of: tuple[SchemaNode, ...] = ()
    any_of: tuple[SchemaNode, ...] = ()
    one_of: tuple[SchemaNode, ...] = ()
    not_: SchemaNode | None = None
    if_: SchemaNode | None = None
    then: SchemaNode | None = None
    else_: SchemaNode | None = None

    # unrecognised keywords, kept for callers but never enforced
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def has_const(self) -> bool:
        return self.const is not _MISSING

    @property
    def location(self) -> str:
        return f"{self.uri}#{self.pointer}"

    def __repr__(self) -> str:
        return f"SchemaNode({self.location!r})"
