"""Resolve the collection an indexing run or bulk update targets."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

from .config import PartitioningConfig
from .registry import DEFAULT_REGISTRY, ModelRegistry

logger = logging.getLogger(__name__)


def _positional_arity(fn: Callable[..., Any]) -> int:
    """Number of positional args ``fn`` takes; -1 when it accepts ``*args``."""
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return 1
    count = 0
    for param in params:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return -1
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


class CollectionResolver:
    """Shared by the indexing pipeline and bulk updates so both land on the same collection."""

    def __init__(
        self,
        registry: Optional[ModelRegistry] = None,
        partitioning: Optional[PartitioningConfig] = None,
    ) -> None:
        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._partitioning = partitioning or PartitioningConfig()

    def resolve_into(self, model: type, partition: Any = None, into: Optional[str] = None) -> str:
        if into is not None and str(into).strip():
            return str(into)

        resolver = self._partitioning.default_into_resolver
        if resolver is not None:
            arity = _positional_arity(resolver)
            value = None
            if arity == 1:
                value = resolver(model)
            elif arity == 2 or arity < 0:
                value = resolver(model, partition)
            if value is not None and str(value).strip():
                return str(value)

        collection = self._registry.require(model).collection
        logger.debug("Resolved %s (partition=%r) to collection %s", model.__name__, partition, collection)
        return collection
