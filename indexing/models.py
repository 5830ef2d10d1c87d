"""Domain models used throughout the indexing pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class PartitionDirectives:
    """Partitioning callables declared for one model type."""

    partitions: Optional[Callable[[], Any]] = None
    partition_fetch: Optional[Callable[[Any], Any]] = None
    before_partition: Optional[Callable[..., Any]] = None
    after_partition: Optional[Callable[..., Any]] = None

    def any_declared(self) -> bool:
        return any(
            directive is not None
            for directive in (
                self.partitions,
                self.partition_fetch,
                self.before_partition,
                self.after_partition,
            )
        )


@dataclass(frozen=True)
class SourceDefinition:
    """Source adapter declaration used when no partition_fetch directive exists."""

    type: str
    options: Dict[str, Any] = field(default_factory=dict)
    callback: Optional[Callable[..., Any]] = None


@dataclass(frozen=True)
class ModelDescriptor:
    model: type
    collection: str
    directives: PartitionDirectives = field(default_factory=PartitionDirectives)
    source: Optional[SourceDefinition] = None
    mapper: Optional[Callable[[Any], Dict[str, Any]]] = None


@dataclass
class PartitionResult:
    model_name: str
    collection: str
    partition: Any
    batches: int = 0
    documents: int = 0
    failures: int = 0
    duration_ms: float = 0.0
    errors_sample: List[str] = field(default_factory=list)


@dataclass
class IndexResult:
    model_name: str
    partitions: List[PartitionResult] = field(default_factory=list)

    @property
    def documents(self) -> int:
        return sum(result.documents for result in self.partitions)

    @property
    def failures(self) -> int:
        return sum(result.failures for result in self.partitions)


def default_collection_name(model: type) -> str:
    """Derive a logical collection name from a class name (``OrderItem`` -> ``order_item``)."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", model.__name__).lower()
