# src/cache/resolver.py — v1
"""Uncached-set resolution: which documents still need extraction.

Pure set difference between the documents' safe keys and the keys
already present in a cache. No side effects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from fusextractor.cache.keys import safe_key
from fusextractor.core.models import get_document_id

if TYPE_CHECKING:
    from fusextractor.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)


def resolve_uncached(
    all_documents: Iterable[Any],
    id_field: str,
    cache: BaseCacheStore,
) -> list[Any]:
    """Return the documents whose safe key is absent from ``cache``.

    Input order is preserved.
    """
    documents = list(all_documents)
    cached_keys = cache.keys()
    if not cached_keys:
        return documents

    remaining = [
        doc for doc in documents
        if safe_key(get_document_id(doc, id_field)) not in cached_keys
    ]
    logger.info(
        "Found %d uncached documents (out of %d total)",
        len(remaining), len(documents),
    )
    return remaining


def partition_by_cache(
    all_documents: Iterable[Any],
    id_field: str,
    cache: BaseCacheStore,
) -> tuple[list[Any], list[Any]]:
    """Split documents into (uncached, cached), both in input order."""
    cached_keys = cache.keys()
    uncached: list[Any] = []
    cached: list[Any] = []
    for doc in all_documents:
        key = safe_key(get_document_id(doc, id_field))
        (cached if key in cached_keys else uncached).append(doc)
    return uncached, cached
