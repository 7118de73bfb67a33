"""
`format` keyword support.

Format assertions are delegated to the jsonschema library's FormatChecker for
the draft in effect. Formats the checker does not know about always pass, as
do non-string values for string formats.

Meta-schema checks use a copy of the same checker whose `regex` format
accepts ECMA-262 patterns, so schemas are judged by the pattern dialect the
engine actually runs.
"""

from __future__ import annotations

import re
from typing import Any

from jsonschema import Draft4Validator, Draft6Validator, Draft7Validator, FormatChecker

from jsonvalidation.engine.patterns import compile_pattern
from jsonvalidation.schemas.drafts import DRAFT_4, DRAFT_6, DRAFT_7

_CHECKERS: dict[int, FormatChecker] = {
    DRAFT_4: Draft4Validator.FORMAT_CHECKER,
    DRAFT_6: Draft6Validator.FORMAT_CHECKER,
    DRAFT_7: Draft7Validator.FORMAT_CHECKER,
}


def _is_ecma_regex(instance: Any) -> bool:
    if not isinstance(instance, str):
        return True
    compile_pattern(instance)
    return True


def _schema_checker(draft: int) -> FormatChecker:
    checker = FormatChecker(formats=())
    checker.checkers = dict(_CHECKERS[draft].checkers)
    checker.checks("regex", raises=re.error)(_is_ecma_regex)
    return checker


_SCHEMA_CHECKERS: dict[int, FormatChecker] = {draft: _schema_checker(draft) for draft in _CHECKERS}


def checker_for(draft: int) -> FormatChecker:
    return _CHECKERS.get(draft, Draft7Validator.FORMAT_CHECKER)


def schema_checker_for(draft: int) -> FormatChecker:
    """Checker for validating schema documents against their meta-schema."""
    return _SCHEMA_CHECKERS.get(draft, _SCHEMA_CHECKERS[DRAFT_7])


def conforms(value: Any, format_name: str, draft: int) -> bool:
    return checker_for(draft).conforms(value, format_name)
