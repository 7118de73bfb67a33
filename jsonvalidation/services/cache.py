"""Process-local cache of compiled schema graphs, keyed by schema location."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from jsonvalidation.engine.node import SchemaNode

logger = logging.getLogger(__name__)


class SchemaCache:
    """
    Builds each entry at most once.

    Concurrent first requests for the same key wait on a per-key lock while
    one of them compiles; other keys are not blocked. Entries are never
    mutated after insertion.
    """

    def __init__(self):
        self._lock = Lock()
        self._key_locks: dict[str, Lock] = {}
        self._nodes: dict[str, SchemaNode] = {}

    def get(self, key: str) -> SchemaNode | None:
        with self._lock:
            return self._nodes.get(key)

    def get_or_build(self, key: str, build: Callable[[], SchemaNode]) -> SchemaNode:
        node = self.get(key)
        if node is not None:
            logger.debug("Schema cache hit: %s", key)
            return node

        with self._lock:
            key_lock = self._key_locks.setdefault(key, Lock())
        with key_lock:
            node = self.get(key)
            if node is not None:
                return node
            try:
                node = build()
                with self._lock:
                    self._nodes[key] = node
            finally:
                with self._lock:
                    self._key_locks.pop(key, None)
        return node

    def clear(self) -> None:
        with self._lock:
            self._nodes.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)
