"""Model registry mapping model classes to their indexing declarations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .errors import InvalidParams
from .models import ModelDescriptor, PartitionDirectives, SourceDefinition, default_collection_name

logger = logging.getLogger(__name__)


@dataclass
class ModelRegistry:
    """Side-table of model descriptors keyed by model class identity."""

    descriptors: Dict[type, ModelDescriptor] = field(default_factory=dict)

    def register(
        self,
        model: type,
        *,
        collection: Optional[str] = None,
        partitions: Optional[Callable[[], Any]] = None,
        partition_fetch: Optional[Callable[[Any], Any]] = None,
        before_partition: Optional[Callable[..., Any]] = None,
        after_partition: Optional[Callable[..., Any]] = None,
        source: Optional[SourceDefinition] = None,
        mapper: Optional[Callable[[Any], Dict[str, Any]]] = None,
    ) -> ModelDescriptor:
        if not isinstance(model, type):
            raise InvalidParams(f"model must be a class; got {type(model).__name__}")
        descriptor = ModelDescriptor(
            model=model,
            collection=collection or default_collection_name(model),
            directives=PartitionDirectives(
                partitions=partitions,
                partition_fetch=partition_fetch,
                before_partition=before_partition,
                after_partition=after_partition,
            ),
            source=source,
            mapper=mapper,
        )
        self.descriptors[model] = descriptor
        logger.debug("Registered model %s -> collection %s", model.__name__, descriptor.collection)
        return descriptor

    def get(self, model: type) -> Optional[ModelDescriptor]:
        return self.descriptors.get(model)

    def require(self, model: type) -> ModelDescriptor:
        descriptor = self.get(model)
        if descriptor is None:
            name = getattr(model, "__name__", repr(model))
            raise InvalidParams(f"model {name} is not registered for indexing")
        return descriptor

    def find(self, name: str) -> Optional[type]:
        """Look up a registered model class by class name or collection name."""
        for model, descriptor in self.descriptors.items():
            if name in (model.__name__, descriptor.collection):
                return model
        return None


DEFAULT_REGISTRY = ModelRegistry()
