# src/cache/keys.py — v1
"""Filesystem-safe cache keys derived from document identifiers.

The same function is used on the write path and on the uncached-set
path; any divergence would misclassify cached documents as uncached.
"""

from __future__ import annotations

import re

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_-]")


def safe_key(document_id: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_-]`` with ``_``.

    Pure and idempotent: ``safe_key(safe_key(x)) == safe_key(x)``.
    Distinct ids may collapse to the same key ("a/b" and "a.b");
    callers must keep ids unique under this transform.
    """
    return _UNSAFE_RE.sub("_", str(document_id))


def find_key_collisions(document_ids: list[str]) -> dict[str, list[str]]:
    """Group distinct ids that map to the same safe key.

    Returns only keys shared by two or more distinct ids.
    """
    groups: dict[str, list[str]] = {}
    for doc_id in document_ids:
        members = groups.setdefault(safe_key(doc_id), [])
        if doc_id not in members:
            members.append(doc_id)
    return {key: ids for key, ids in groups.items() if len(ids) > 1}
