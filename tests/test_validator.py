"""Tests for the validation engine, one keyword family at a time."""

import pytest

from jsonvalidation.engine.compiler import SchemaCompiler
from jsonvalidation.engine.validator import SchemaValidator
from jsonvalidation.services.decoder import decode

DRAFT_4 = "http://json-schema.org/draft-04/schema#"


def _errors(schema, instance, validate_formats=True):
    node = SchemaCompiler().compile(schema)
    return SchemaValidator(validate_formats=validate_formats).validate(instance, node)


def _constraints(schema, instance):
    return [(e.pointer, e.constraint) for e in _errors(schema, instance)]


# ---------------------------------------------------------------------------
# type
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "type_name, good, bad",
    [
        ("null", None, 0),
        ("boolean", True, 1),
        ("integer", 3, 3.5),
        ("number", 3.5, "3.5"),
        ("string", "x", ["x"]),
        ("array", [1], {"0": 1}),
        ("object", {"a": 1}, [("a", 1)]),
    ],
)
def test_type_keyword(type_name, good, bad):
    assert _errors({"type": type_name}, good) == []
    assert _constraints({"type": type_name}, bad) == [("", "type")]


def test_booleans_are_not_numbers():
    assert _constraints({"type": "integer"}, True) == [("", "type")]
    assert _constraints({"type": "number"}, False) == [("", "type")]


def test_integral_float_is_integer_from_draft_6():
    assert _errors({"type": "integer"}, 1.0) == []
    assert _constraints({"$schema": DRAFT_4, "type": "integer"}, 1.0) == [("", "type")]


def test_type_list():
    schema = {"type": ["string", "null"]}
    assert _errors(schema, None) == []
    errors = _errors(schema, 5)
    assert len(errors) == 1
    assert '"string" or "null"' in errors[0].message


def test_type_mismatch_skips_value_checks_but_not_combinators():
    schema = {"type": "string", "minLength": 3, "enum": ["abc"], "not": {"type": "integer"}}
    assert _constraints(schema, 7) == [("", "type"), ("", "not")]


# ---------------------------------------------------------------------------
# enum / const
# ---------------------------------------------------------------------------

def test_enum_uses_structural_equality():
    schema = {"enum": [1, "a", [1, 2], {"k": None}]}
    for value in (1, 1.0, "a", [1, 2], {"k": None}):
        assert _errors(schema, value) == []
    assert _constraints(schema, [2, 1]) == [("", "enum")]
    assert _constraints(schema, True) == [("", "enum")]


def test_const_with_frozen_instance():
    schema = {"const": {"a": [1, 2]}}
    assert _errors(schema, decode('{"a": [1, 2.0]}')) == []
    assert _constraints(schema, decode('{"a": [1]}')) == [("", "const")]


# ---------------------------------------------------------------------------
# numbers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "schema, value, constraint",
    [
        ({"minimum": 5}, 4, "minimum"),
        ({"maximum": 5}, 5.5, "maximum"),
        ({"exclusiveMinimum": 5}, 5, "exclusiveMinimum"),
        ({"exclusiveMaximum": 5}, 5, "exclusiveMaximum"),
        ({"$schema": DRAFT_4, "minimum": 5, "exclusiveMinimum": True}, 5, "exclusiveMinimum"),
        ({"multipleOf": 3}, 10, "multipleOf"),
        ({"multipleOf": 0.01}, 0.015, "multipleOf"),
        ({"multipleOf": 0.001}, 1e-13, "multipleOf"),
    ],
)
def test_numeric_violations(schema, value, constraint):
    assert _constraints(schema, value) == [("", constraint)]


@pytest.mark.parametrize(
    "divisor, value",
    [(0.1, 0.3), (0.01, 19.99), (0.0001, 0.0075), (2, 10), (1.5, 4.5)],
)
def test_multiple_of_tolerates_float_representation(divisor, value):
    assert _errors({"multipleOf": divisor}, value) == []


def test_numeric_bounds_inclusive():
    assert _errors({"minimum": 5, "maximum": 5}, 5) == []


# ---------------------------------------------------------------------------
# strings
# ---------------------------------------------------------------------------

def test_length_counts_code_points():
    schema = {"minLength": 2, "maxLength": 2}
    assert _errors(schema, "\U0001F600\U0001F600") == []
    assert _errors(schema, "né") == []
    assert _constraints(schema, "\U0001F600") == [("", "minLength")]


def test_pattern_is_searched_not_full_matched():
    assert _errors({"pattern": "b+"}, "abbbc") == []
    assert _constraints({"pattern": "^b+$"}, "abbbc") == [("", "pattern")]


def test_pattern_dollar_does_not_match_before_trailing_newline():
    assert _constraints({"pattern": "^abc$"}, "abc\n") == [("", "pattern")]


def test_pattern_digit_class_is_ascii_only():
    assert _constraints({"pattern": "^\\d+$"}, "١٢") == [("", "pattern")]
    assert _errors({"pattern": "^\\d+$"}, "12") == []


def test_pattern_ignores_non_strings():
    assert _errors({"pattern": "^a"}, 12) == []


def test_format_checked_through_jsonschema():
    assert _errors({"format": "ipv4"}, "192.168.0.1") == []
    assert _constraints({"format": "ipv4"}, "999.1.1.1") == [("", "format")]
    assert _errors({"format": "ipv4"}, "999.1.1.1", validate_formats=False) == []
    assert _errors({"format": "made-up"}, "whatever") == []


# ---------------------------------------------------------------------------
# arrays
# ---------------------------------------------------------------------------

def test_items_schema_applies_to_every_element():
    assert _constraints({"items": {"type": "integer"}}, [1, "x", 3, None]) == [
        ("/1", "type"),
        ("/3", "type"),
    ]


def test_tuple_items_and_additional_items():
    schema = {"items": [{"type": "string"}, {"type": "integer"}], "additionalItems": False}
    assert _errors(schema, ["a", 1]) == []
    assert _errors(schema, ["a"]) == []
    assert _constraints(schema, [1, "a"]) == [("/0", "type"), ("/1", "type")]
    assert _constraints(schema, ["a", 1, None]) == [("", "additionalItems")]


def test_additional_items_schema():
    schema = {"items": [{"type": "string"}], "additionalItems": {"type": "integer"}}
    assert _constraints(schema, ["a", 1, "b"]) == [("/2", "type")]


def test_array_length():
    assert _constraints({"minItems": 2}, [1]) == [("", "minItems")]
    assert _constraints({"maxItems": 1}, [1, 2]) == [("", "maxItems")]


def test_unique_items_uses_numeric_equality():
    schema = {"uniqueItems": True}
    assert _constraints(schema, [1, 1.0]) == [("", "uniqueItems")]
    assert _constraints(schema, [{"a": 1}, {"a": 1}]) == [("", "uniqueItems")]
    assert _errors(schema, [1, True]) == []
    assert _errors(schema, [[1, 2], [2, 1]]) == []
    assert _errors({"uniqueItems": False}, [1, 1]) == []


def test_contains():
    schema = {"contains": {"type": "integer"}}
    assert _errors(schema, ["a", 2]) == []
    assert _constraints(schema, ["a", "b"]) == [("", "contains")]
    assert _constraints(schema, []) == [("", "contains")]


# ---------------------------------------------------------------------------
# objects
# ---------------------------------------------------------------------------

def test_required_points_at_missing_property():
    errors = _errors({"required": ["id", "name"]}, {"id": 1})
    assert [(e.pointer, e.constraint) for e in errors] == [("/name", "required")]
    assert errors[0].message == "The property name is required"


def test_pattern_properties_apply_every_match():
    schema = {"patternProperties": {"^x-": {"type": "string"}, "id$": {"type": "integer"}}}
    assert _constraints(schema, {"x-id": "abc"}) == [("/x-id", "type")]
    assert _errors(schema, {"x-a": "ok", "uid": 3}) == []


def test_additional_properties_false_rejects_each_extra_key():
    schema = {
        "properties": {"a": {}},
        "patternProperties": {"^x-": {}},
        "additionalProperties": False,
    }
    errors = _errors(schema, {"a": 1, "x-b": 2, "c": 3, "d": 4})
    assert [(e.pointer, e.constraint) for e in errors] == [
        ("/c", "additionalProperties"),
        ("/d", "additionalProperties"),
    ]
    assert "does not allow additional properties" in errors[0].message


def test_additional_properties_schema():
    schema = {"properties": {"a": {}}, "additionalProperties": {"type": "boolean"}}
    assert _constraints(schema, {"a": "x", "b": True, "c": 1}) == [("/c", "type")]


def test_property_count_and_names():
    assert _constraints({"minProperties": 1}, {}) == [("", "minProperties")]
    assert _constraints({"maxProperties": 1}, {"a": 1, "b": 2}) == [("", "maxProperties")]
    assert _constraints({"propertyNames": {"maxLength": 3}}, {"abcd": 1}) == [
        ("/abcd", "maxLength")
    ]


def test_dependencies():
    schema = {
        "dependencies": {
            "card": ["billing_address"],
            "coupon": {"required": ["campaign"]},
        }
    }
    assert _errors(schema, {"name": "x"}) == []
    assert _constraints(schema, {"card": 1}) == [("/billing_address", "dependencies")]
    assert _constraints(schema, {"coupon": "A"}) == [("/campaign", "required")]


def test_pointer_escaping():
    schema = {"properties": {"a/b": {"type": "string"}, "m~n": {"type": "string"}}}
    errors = _errors(schema, {"a/b": 1, "m~n": 2})
    assert [e.pointer for e in errors] == ["/a~1b", "/m~0n"]


def test_nested_pointer_and_property_path():
    schema = {
        "properties": {
            "lines": {"items": {"properties": {"sku": {"type": "string"}}}},
        }
    }
    errors = _errors(schema, {"lines": [{"sku": "A"}, {"sku": 9}]})
    assert len(errors) == 1
    assert errors[0].pointer == "/lines/1/sku"
    assert errors[0].property == "lines[1].sku"


# ---------------------------------------------------------------------------
# boolean schemas
# ---------------------------------------------------------------------------

def test_boolean_schemas():
    assert _errors(True, {"anything": [1]}) == []
    assert _constraints(False, 1) == [("", "false")]
    assert _constraints({"properties": {"a": False}}, {"a": 1}) == [("/a", "false")]


def test_iter_errors_yields_in_check_order_under_a_pointer():
    node = SchemaCompiler().compile({"type": "object", "required": ["a", "b"]})
    errors = SchemaValidator().iter_errors({}, node, pointer="/order")

    assert [(e.pointer, e.property) for e in errors] == [
        ("/order/a", "order.a"),
        ("/order/b", "order.b"),
    ]
