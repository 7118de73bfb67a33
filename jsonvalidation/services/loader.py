"""
Schema loading.

Demonstrates:
- Delegating identifier -> location lookup to a locator collaborator
- Reading schema documents from local files or an in-memory registry
- Wrapping every lookup failure into a single SchemaNotFoundError
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from threading import RLock
from typing import Any, Protocol
from urllib.parse import urldefrag, urlparse
from urllib.request import url2pathname

from jsonvalidation.exceptions import DecodeError, SchemaError, SchemaNotFoundError
from jsonvalidation.services.decoder import decode, thaw

logger = logging.getLogger(__name__)


class SchemaLocator(Protocol):
    """Anything that maps a logical schema identifier to a location."""

    def locate(self, identifier: str) -> str: ...


class FileLocator:
    """Finds schema files by absolute path or relative to a list of search paths."""

    def __init__(self, search_paths: list[str | os.PathLike] | None = None):
        self.search_paths = [Path(p) for p in (search_paths or [])]

    def locate(self, identifier: str) -> str:
        candidate = Path(identifier)
        if candidate.is_absolute():
            if candidate.is_file():
                return str(candidate)
        else:
            for base in self.search_paths:
                path = base / candidate
                if path.is_file():
                    return str(path.resolve())
        raise FileNotFoundError(f"The file '{identifier}' does not exist")


def to_uri(location: str) -> str:
    """Turn a filesystem location into a `file://` URI, leaving URIs untouched."""
    if "://" in location or location.startswith("urn:"):
        return location
    return Path(location).resolve().as_uri()


def _strip_fragment(uri: str) -> str:
    return urldefrag(uri)[0]


class SchemaLoader:
    """
    Resolves schema identifiers and reads schema documents.

    Documents are memoized per URI: schema content is assumed not to change
    for the lifetime of the process.
    """

    def __init__(self, locator: SchemaLocator | None = None):
        self.locator = locator
        self._documents: dict[str, Any] = {}
        self._registry: dict[str, Any] = {}
        self._lock = RLock()

    def register(self, uri: str, document: Any) -> None:
        """Make a schema document available under `uri` without touching disk."""
        if isinstance(document, (str, bytes)):
            document = self._decode(document, uri)
        with self._lock:
            self._registry[_strip_fragment(uri)] = thaw(document)

    def is_registered(self, uri: str) -> bool:
        with self._lock:
            return _strip_fragment(uri) in self._registry

    def locate(self, identifier: str) -> str:
        """Return the URI for `identifier`, raising SchemaNotFoundError on any failure."""
        if self.is_registered(identifier):
            return _strip_fragment(identifier)
        if self.locator is None:
            raise SchemaNotFoundError(identifier, reason="no schema locator configured")
        try:
            location = self.locator.locate(identifier)
        except Exception as exc:
            logger.warning("Schema lookup failed for '%s': %s", identifier, exc)
            raise SchemaNotFoundError(identifier, reason=str(exc)) from exc
        return to_uri(str(location))

    def load(self, uri: str) -> Any:
        """Return the decoded schema document stored at `uri` (fragment ignored)."""
        uri = _strip_fragment(uri)
        with self._lock:
            if uri in self._registry:
                return self._registry[uri]
            if uri in self._documents:
                return self._documents[uri]

        document = self._decode(self._read(uri), uri)
        with self._lock:
            self._documents.setdefault(uri, document)
            return self._documents[uri]

    def _read(self, uri: str) -> str:
        parsed = urlparse(uri)
        if parsed.scheme not in ("", "file"):
            raise SchemaError(
                f"Cannot resolve '{uri}': remote references must be registered first",
                uri=uri,
            )
        path = url2pathname(parsed.path) if parsed.scheme == "file" else uri
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not read schema '%s': %s", uri, exc)
            raise SchemaError(f"Unable to read schema {uri}: {exc.strerror}", uri=uri) from exc

    @staticmethod
    def _decode(text: str | bytes, uri: str) -> Any:
        try:
            return decode(text, loose=True)
        except DecodeError as exc:
            raise SchemaError(f"Schema {uri} is not valid JSON: {exc}", uri=uri) from exc
