"""Interface definitions for source adapters and document stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional


class SourceAdapter(ABC):
    """A lazy producer of record batches over a concrete data source."""

    @abstractmethod
    def each_batch(self, partition: Any = None, cursor: Any = None) -> Iterator[List[Any]]:
        """Yield batches of records for the given partition, resuming after ``cursor``."""


class DocumentStore(ABC):
    """Remote document store receiving imports and bulk updates."""

    @abstractmethod
    def import_documents(
        self, collection: str, documents: List[Dict[str, Any]], action: str = "upsert"
    ) -> List[Dict[str, Any]]:
        """Import documents, returning one result entry per document."""

    @abstractmethod
    def update_documents_by_filter(
        self,
        collection: str,
        filter_by: str,
        fields: Dict[str, Any],
        timeout_ms: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Partially update every document matching ``filter_by``."""

    @abstractmethod
    def delete_documents_by_filter(
        self, collection: str, filter_by: str, timeout_ms: Optional[int] = None
    ) -> Dict[str, Any]:
        """Delete every document matching ``filter_by``."""
