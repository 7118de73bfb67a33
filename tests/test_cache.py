"""Tests for the compiled-schema cache – no schema files required."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from jsonvalidation.engine.node import SchemaNode
from jsonvalidation.services.cache import SchemaCache


def _node(name="root"):
    return SchemaNode(uri=f"urn:test:{name}", pointer="", draft=7)


def test_builds_once_and_returns_same_node():
    cache = SchemaCache()
    calls = []

    def build():
        calls.append(1)
        return _node()

    first = cache.get_or_build("a", build)
    second = cache.get_or_build("a", build)

    assert first is second
    assert len(calls) == 1
    assert "a" in cache
    assert len(cache) == 1


def test_concurrent_first_builds_are_deduplicated():
    cache = SchemaCache()
    calls = []
    lock = threading.Lock()

    def build():
        with lock:
            calls.append(1)
        time.sleep(0.05)
        return _node()

    with ThreadPoolExecutor(max_workers=8) as pool:
        nodes = list(pool.map(lambda _: cache.get_or_build("a", build), range(16)))

    assert len(calls) == 1
    assert all(node is nodes[0] for node in nodes)


def test_failed_build_is_not_cached():
    cache = SchemaCache()

    def broken():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.get_or_build("a", broken)

    assert "a" not in cache
    assert cache.get_or_build("a", _node).uri == "urn:test:root"


def test_clear():
    cache = SchemaCache()
    cache.get_or_build("a", _node)
    cache.clear()

    assert len(cache) == 0
    assert cache.get("a") is None


def test_failed_build_releases_its_key_lock():
    cache = SchemaCache()

    def broken():
        raise RuntimeError("boom")

    for _ in range(3):
        with pytest.raises(RuntimeError):
            cache.get_or_build("a", broken)

    assert cache._key_locks == {}
