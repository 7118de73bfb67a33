"""
ECMA-262 flavoured regular expressions on top of Python's `re`.

Schema patterns are written for JavaScript engines. The differences that
matter in practice are handled here:
- `\\d`, `\\w` and `\\b` are ASCII-only in ECMA-262 (compiled with re.ASCII)
- `$` only matches at the very end of the input, never before a trailing newline
- named groups are spelled `(?<name>...)` and back-referenced with `\\k<name>`
"""

from __future__ import annotations

import re
from functools import lru_cache


def translate(pattern: str) -> str:
    """Rewrite ECMA-262 syntax that Python's `re` reads differently."""
    out: list[str] = []
    in_class = False
    i = 0
    length = len(pattern)
    while i < length:
        char = pattern[i]
        if char == "\\" and i + 1 < length:
            nxt = pattern[i + 1]
            if nxt == "k" and not in_class and pattern.startswith("<", i + 2):
                end = pattern.find(">", i + 3)
                if end != -1:
                    out.append(f"(?P={pattern[i + 3:end]})")
                    i = end + 1
                    continue
            out.append(pattern[i : i + 2])
            i += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
            out.append(char)
        elif char == "[":
            # `[]` never matches and `[^]` matches anything
            if pattern.startswith("[]", i):
                out.append("(?!)")
                i += 2
                continue
            if pattern.startswith("[^]", i):
                out.append(r"[\s\S]")
                i += 3
                continue
            in_class = True
            out.append(char)
        elif char == "$":
            out.append(r"\Z")
        elif pattern.startswith("(?<", i) and not pattern.startswith(("(?<=", "(?<!"), i):
            out.append("(?P<")
            i += 3
            continue
        else:
            out.append(char)
        i += 1
    return "".join(out)


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> re.Pattern:
    """Compile an ECMA-262 pattern. Raises re.error for invalid expressions."""
    return re.compile(translate(pattern), re.ASCII)
