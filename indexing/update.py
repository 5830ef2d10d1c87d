"""Bulk update and delete of indexed documents by filter."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from .config import UpdateConfig
from .errors import InvalidParams
from .filters import build_filter
from .interfaces import DocumentStore
from .resolver import CollectionResolver

logger = logging.getLogger(__name__)

UPDATED_KEYS = ("num_updated", "updated", "numUpdated")
DELETED_KEYS = ("num_deleted", "deleted", "numDeleted")


def _count_from(response: Optional[Mapping[str, Any]], keys: Sequence[str]) -> int:
    if not response:
        return 0
    for key in keys:
        value = response.get(key)
        if value is not None:
            try:
                return int(value)
            except (TypeError, ValueError):
                logger.warning("Unreadable %s in response: %r", key, value)
                return 0
    return 0


class BulkUpdater:
    def __init__(
        self,
        store: DocumentStore,
        resolver: Optional[CollectionResolver] = None,
        config: Optional[UpdateConfig] = None,
    ) -> None:
        self._store = store
        self._resolver = resolver or CollectionResolver()
        self._config = config or UpdateConfig()

    def update_by(
        self,
        model: type,
        attributes: Mapping[str, Any],
        filter_by: Optional[str] = None,
        where: Optional[Mapping[str, Any]] = None,
        into: Optional[str] = None,
        partition: Any = None,
        timeout_ms: Optional[int] = None,
        filter_args: Optional[Sequence[Any]] = None,
    ) -> int:
        """Update every document matching the filter and return the updated count.

        ``filter_by`` wins over ``where``; ``filter_args`` fill its ``?``
        placeholders. The collection is resolved the same way the indexing
        pipeline resolves it unless ``into`` names one explicitly.
        """
        if not isinstance(attributes, Mapping) or not attributes:
            raise InvalidParams("attributes must be a non-empty mapping")

        filter_str = build_filter(filter_by, where, filter_args)
        collection = self._resolver.resolve_into(model, partition=partition, into=into)
        fields: Dict[str, Any] = dict(attributes)

        response = self._store.update_documents_by_filter(
            collection=collection,
            filter_by=filter_str,
            fields=fields,
            timeout_ms=timeout_ms,
        )
        updated = _count_from(response, UPDATED_KEYS)
        logger.info("Updated %d documents in %s where %s", updated, collection, filter_str)
        return updated

    def delete_by(
        self,
        model: type,
        filter_by: Optional[str] = None,
        where: Optional[Mapping[str, Any]] = None,
        into: Optional[str] = None,
        partition: Any = None,
        timeout_ms: Optional[int] = None,
        filter_args: Optional[Sequence[Any]] = None,
    ) -> int:
        """Delete every document matching the filter and return the deleted count."""
        filter_str = build_filter(filter_by, where, filter_args)
        collection = self._resolver.resolve_into(model, partition=partition, into=into)
        effective_timeout = timeout_ms if timeout_ms and timeout_ms > 0 else self._config.delete_timeout_ms

        response = self._store.delete_documents_by_filter(
            collection=collection,
            filter_by=filter_str,
            timeout_ms=effective_timeout,
        )
        deleted = _count_from(response, DELETED_KEYS)
        logger.info("Deleted %d documents from %s where %s", deleted, collection, filter_str)
        return deleted
