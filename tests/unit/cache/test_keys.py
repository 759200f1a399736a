# tests/unit/cache/test_keys.py — v1
"""Tests for cache/keys.py — safe_key derivation."""

from __future__ import annotations

import pytest

from fusextractor.cache.keys import find_key_collisions, safe_key


class TestSafeKey:
    def test_already_safe(self):
        assert safe_key("PM_12345") == "PM_12345"

    def test_doi(self):
        assert safe_key("10.1002/ps.1234") == "10_1002_ps_1234"

    def test_hyphen_kept(self):
        assert safe_key("SCOPUS-2-s2.0-85") == "SCOPUS-2-s2_0-85"

    def test_non_ascii_replaced(self):
        assert safe_key("étude 1") == "_tude_1"

    @pytest.mark.parametrize("raw", ["10.1002/ps.1234", "W2741809807", "a b/c:d", ""])
    def test_idempotent(self, raw):
        assert safe_key(safe_key(raw)) == safe_key(raw)

    def test_non_string_input(self):
        assert safe_key(12345) == "12345"


class TestFindKeyCollisions:
    def test_reports_colliding_ids(self):
        collisions = find_key_collisions(["a/b", "a.b", "c"])
        assert collisions == {"a_b": ["a/b", "a.b"]}

    def test_repeated_same_id_is_not_a_collision(self):
        assert find_key_collisions(["x.1", "x.1"]) == {}
