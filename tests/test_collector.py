"""Tests for the ErrorCollector."""

from jsonvalidation.engine.collector import ErrorCollector
from jsonvalidation.schemas.results import ValidationError


def test_add_derives_property_path():
    errors = ErrorCollector()
    errors.add("/lines/0/sku", "bad sku", "type")
    errors.add(None, "no schema")

    assert [(e.pointer, e.property, e.constraint) for e in errors.errors] == [
        ("/lines/0/sku", "lines[0].sku", "type"),
        (None, None, None),
    ]


def test_extend_keeps_order():
    first = ErrorCollector()
    first.add("/a", "first", "minimum")
    second = ErrorCollector()
    second.add("/b", "second", "maximum")

    first.extend(second.errors)
    first.extend([ValidationError(pointer="/c", property="c", message="third", constraint="enum")])

    assert [e.message for e in first.errors] == ["first", "second", "third"]
    assert len(first) == 3


def test_reset_empties_the_collector():
    errors = ErrorCollector()
    errors.add("", "boom", "false")
    assert errors.has_errors

    errors.reset()

    assert not errors.has_errors
    assert len(errors) == 0
    assert errors.errors == []


def test_errors_is_a_copy():
    errors = ErrorCollector()
    errors.add("", "boom", "false")

    errors.errors.clear()

    assert len(errors) == 1
