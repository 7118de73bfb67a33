"""
Validation engine.

Recursively checks a decoded JSON value against a compiled SchemaNode graph.
Constraint mismatches are recorded in an ErrorCollector as data; nothing in
the walk raises for an invalid document.

Check order for one node:
1. boolean schemas accept or reject outright
2. `type`: on mismatch record one error and skip the value-specific checks
3. enum/const, then numeric, string, array and object keywords
4. combinators (allOf/anyOf/oneOf/not/if) always run
"""

from __future__ import annotations

import json
from typing import Any, Iterator

from jsonvalidation.engine import comparison, formats
from jsonvalidation.engine import pointer as json_pointer
from jsonvalidation.engine.collector import ErrorCollector
from jsonvalidation.engine.node import SchemaNode
from jsonvalidation.schemas.results import ValidationError

_SHOW_LIMIT = 80


def _show(value: Any) -> str:
    """Compact JSON rendering of a value for error messages."""
    text = json.dumps(value, default=dict, ensure_ascii=False)
    if len(text) > _SHOW_LIMIT:
        text = text[: _SHOW_LIMIT - 3] + "..."
    return text


def _types(names: tuple[str, ...]) -> str:
    return " or ".join(f'"{name}"' for name in names)


class SchemaValidator:
    """
    Walks an instance against a SchemaNode.

    Usage:
        validator = SchemaValidator()
        errors = validator.validate({"id": "abc"}, node)
        for error in validator.iter_errors(document, node):
            ...
    """

    def __init__(self, validate_formats: bool = True):
        self.validate_formats = validate_formats

    def iter_errors(self, instance: Any, node: SchemaNode, pointer: str = "") -> Iterator[ValidationError]:
        """Yield each violation of `node` by `instance`, in check order."""
        errors = ErrorCollector()
        self.descend(instance, node, pointer, errors)
        yield from errors.errors

    def validate(self, instance: Any, node: SchemaNode) -> list[ValidationError]:
        """Return every violation of `node` by `instance` (empty list = valid)."""
        return list(self.iter_errors(instance, node))

    def is_valid(self, instance: Any, node: SchemaNode, pointer: str = "") -> bool:
        scratch = ErrorCollector()
        self.descend(instance, node, pointer, scratch)
        return not scratch.has_errors

    def descend(self, instance: Any, node: SchemaNode, pointer: str, errors: ErrorCollector) -> None:
        if node.always is not None:
            if not node.always:
                errors.add(pointer, f"False schema does not allow {_show(instance)}", "false")
            return

        if self._check_type(instance, node, pointer, errors):
            self._check_values(instance, node, pointer, errors)
            if comparison.is_number(instance):
                self._check_numeric(instance, node, pointer, errors)
            elif isinstance(instance, str):
                self._check_string(instance, node, pointer, errors)
            elif comparison.is_array(instance):
                self._check_array(instance, node, pointer, errors)
            elif comparison.is_object(instance):
                self._check_object(instance, node, pointer, errors)

        self._check_combinators(instance, node, pointer, errors)

    # ------------------------------------------------------------------
    # Keyword groups
    # ------------------------------------------------------------------

    def _check_type(self, instance: Any, node: SchemaNode, pointer: str, errors: ErrorCollector) -> bool:
        if node.types is None:
            return True
        if any(comparison.matches_type(instance, name, node.draft) for name in node.types):
            return True
        errors.add(
            pointer,
            f"{_show(instance)} is not of type {_types(node.types)} "
            f"({comparison.kind_of(instance)} found)",
            "type",
        )
        return False

    def _check_values(self, instance: Any, node: SchemaNode, pointer: str, errors: ErrorCollector) -> None:
        if node.enum is not None and not any(
            comparison.json_equal(instance, option) for option in node.enum
        ):
            errors.add(pointer, f"{_show(instance)} is not one of {_show(list(node.enum))}", "enum")
        if node.has_const and not comparison.json_equal(instance, node.const):
            errors.add(pointer, f"{_show(node.const)} was expected, found {_show(instance)}", "const")

    def _check_numeric(self, instance: int | float, node: SchemaNode, pointer: str, errors: ErrorCollector) -> None:
        if node.minimum is not None and instance < node.minimum:
            errors.add(pointer, f"{instance} is less than the minimum of {node.minimum}", "minimum")
        if node.exclusive_minimum is not None and instance <= node.exclusive_minimum:
            errors.add(
                pointer,
                f"{instance} is less than or equal to the exclusive minimum of {node.exclusive_minimum}",
                "exclusiveMinimum",
            )
        if node.maximum is not None and instance > node.maximum:
            errors.add(pointer, f"{instance} is greater than the maximum of {node.maximum}", "maximum")
        if node.exclusive_maximum is not None and instance >= node.exclusive_maximum:
            errors.add(
                pointer,
                f"{instance} is greater than or equal to the exclusive maximum of {node.exclusive_maximum}",
                "exclusiveMaximum",
            )
        if node.multiple_of is not None and not comparison.is_multiple_of(instance, node.multiple_of):
            errors.add(pointer, f"{instance} is not a multiple of {node.multiple_of}", "multipleOf")

    def _check_string(self, instance: str, node: SchemaNode, pointer: str, errors: ErrorCollector) -> None:
        # len() counts code points, not UTF-8 bytes
        length = len(instance)
        if node.min_length is not None and length < node.min_length:
            errors.add(
                pointer,
                f"{_show(instance)} is too short ({length} characters, minimum {node.min_length})",
                "minLength",
            )
        if node.max_length is not None and length > node.max_length:
            errors.add(
                pointer,
                f"{_show(instance)} is too long ({length} characters, maximum {node.max_length})",
                "maxLength",
            )
        if node.pattern is not None and node.pattern.search(instance) is None:
            errors.add(pointer, f"{_show(instance)} does not match {_show(node.pattern_source)}", "pattern")
        if (
            node.format is not None
            and self.validate_formats
            and not formats.conforms(instance, node.format, node.draft)
        ):
            errors.add(pointer, f'{_show(instance)} is not a valid "{node.format}"', "format")

    def _check_array(self, instance: list | tuple, node: SchemaNode, pointer: str, errors: ErrorCollector) -> None:
        size = len(instance)
        if node.min_items is not None and size < node.min_items:
            errors.add(pointer, f"Array has {size} items, fewer than the minimum of {node.min_items}", "minItems")
        if node.max_items is not None and size > node.max_items:
            errors.add(pointer, f"Array has {size} items, more than the maximum of {node.max_items}", "maxItems")
        if node.unique_items and comparison.has_duplicates(instance):
            errors.add(pointer, f"{_show(instance)} has non-unique elements", "uniqueItems")

        if node.items is not None:
            for index, item in enumerate(instance):
                self.descend(item, node.items, json_pointer.join(pointer, index), errors)
        elif node.items_tuple is not None:
            positional = len(node.items_tuple)
            for index, (item, item_node) in enumerate(zip(instance, node.items_tuple)):
                self.descend(item, item_node, json_pointer.join(pointer, index), errors)
            extra = node.additional_items
            if extra is not None and size > positional:
                if extra.always is False:
                    errors.add(
                        pointer,
                        f"Additional items are not allowed ({size - positional} found after "
                        f"the {positional} positional items)",
                        "additionalItems",
                    )
                else:
                    for index in range(positional, size):
                        self.descend(instance[index], extra, json_pointer.join(pointer, index), errors)

        if node.contains is not None and not any(
            self.is_valid(item, node.contains, json_pointer.join(pointer, index))
            for index, item in enumerate(instance)
        ):
            errors.add(pointer, "No array item is valid under the 'contains' schema", "contains")

    def _check_object(self, instance: Any, node: SchemaNode, pointer: str, errors: ErrorCollector) -> None:
        size = len(instance)
        if node.min_properties is not None and size < node.min_properties:
            errors.add(
                pointer,
                f"Object has {size} properties, fewer than the minimum of {node.min_properties}",
                "minProperties",
            )
        if node.max_properties is not None and size > node.max_properties:
            errors.add(
                pointer,
                f"Object has {size} properties, more than the maximum of {node.max_properties}",
                "maxProperties",
            )

        for name in node.required:
            if name not in instance:
                errors.add(json_pointer.join(pointer, name), f"The property {name} is required", "required")

        for name, dependency in node.dependencies.items():
            if name not in instance:
                continue
            if isinstance(dependency, SchemaNode):
                self.descend(instance, dependency, pointer, errors)
                continue
            for missing in dependency:
                if missing not in instance:
                    errors.add(
                        json_pointer.join(pointer, missing),
                        f"The property {missing} is required when {name} is present",
                        "dependencies",
                    )

        for name, value in instance.items():
            child = json_pointer.join(pointer, name)
            if node.property_names is not None:
                self.descend(name, node.property_names, child, errors)

            matched = False
            if name in node.properties:
                matched = True
                self.descend(value, node.properties[name], child, errors)
            for pattern, pattern_node in node.pattern_properties:
                if pattern.search(name) is not None:
                    matched = True
                    self.descend(value, pattern_node, child, errors)

            extra = node.additional_properties
            if matched or extra is None:
                continue
            if extra.always is False:
                errors.add(
                    child,
                    f"The property {name} is not defined and the definition does not allow "
                    "additional properties",
                    "additionalProperties",
                )
            else:
                self.descend(value, extra, child, errors)

    def _check_combinators(self, instance: Any, node: SchemaNode, pointer: str, errors: ErrorCollector) -> None:
        for sub in node.all_of:
            self.descend(instance, sub, pointer, errors)

        if node.any_of and not any(self.is_valid(instance, sub, pointer) for sub in node.any_of):
            errors.add(pointer, f"{_show(instance)} is not valid under any of the given schemas", "anyOf")

        if node.one_of:
            matched = sum(1 for sub in node.one_of if self.is_valid(instance, sub, pointer))
            if matched == 0:
                errors.add(
                    pointer,
                    f"{_show(instance)} is not valid under any of the given schemas (none matched)",
                    "oneOf",
                )
            elif matched > 1:
                errors.add(
                    pointer,
                    f"{_show(instance)} is valid under more than one of the given schemas "
                    f"({matched} matched, exactly one allowed)",
                    "oneOf",
                )

        if node.not_ is not None and self.is_valid(instance, node.not_, pointer):
            errors.add(pointer, f"{_show(instance)} must not be valid under the 'not' schema", "not")

        if node.if_ is not None:
            branch = node.then if self.is_valid(instance, node.if_, pointer) else node.else_
            if branch is not None:
                self.descend(instance, branch, pointer, errors)
