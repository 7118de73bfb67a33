"""JSON Pointer helpers (RFC 6901)."""


def escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def join(pointer: str, token: str | int) -> str:
    return f"{pointer}/{escape(str(token))}"


def split(pointer: str) -> list[str]:
    """Split a pointer into unescaped tokens."""
    if not pointer:
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"Invalid JSON pointer: {pointer!r}")
    return [unescape(token) for token in pointer[1:].split("/")]


def to_property(pointer: str | None) -> str | None:
    """
    Dotted form of a pointer, e.g. `/items/0/name` -> `items[0].name`.
    Returns None for the document root.
    """
    if not pointer:
        return None
    parts: list[str] = []
    for token in split(pointer):
        if token.isdigit():
            if parts:
                parts[-1] += f"[{token}]"
            else:
                parts.append(f"[{token}]")
        else:
            parts.append(token)
    return ".".join(parts)
