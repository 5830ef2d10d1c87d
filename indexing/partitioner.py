"""Compile partitioning directives into validated, immutable plans.

A plan exposes the four directive callables declared for a model:

- ``partitions()`` -> iterable of opaque partition tokens
- ``partition_fetch_enum(token)`` -> lazy iterator of record batches
- ``before_hook(token)`` / ``after_hook(token)``

Batches are validated one at a time as the consumer pulls them, so a bad
element fails at its own index without materializing the rest.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import ContractViolation, InvalidParams
from .models import ModelDescriptor
from .registry import DEFAULT_REGISTRY, ModelRegistry

logger = logging.getLogger(__name__)


def as_batch(batch: Any, index: int, producer: str = "partition_fetch") -> List[Any]:
    """Return ``batch`` as a list, or raise naming the offending index and type."""
    if isinstance(batch, list):
        return batch
    if isinstance(batch, (str, bytes, bytearray, Mapping)) or not isinstance(batch, Iterable):
        raise InvalidParams(
            f"{producer} must yield lists of records; got {type(batch).__name__} at index {index}."
        )
    return list(batch)


def _hook_takes_token(hook: Any, name: str) -> bool:
    """Validate a hook signature; return whether it should receive the partition token."""
    if not callable(hook):
        raise InvalidParams(f"{name} must be callable; got {type(hook).__name__}")
    try:
        signature = inspect.signature(hook)
    except (TypeError, ValueError):
        return True

    params = list(signature.parameters.values())
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True

    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    required = [p for p in positional if p.default is inspect.Parameter.empty]
    required_kw = [
        p
        for p in params
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    if len(required) > 1 or required_kw:
        raise InvalidParams(f"{name} must accept exactly 1 parameter (partition).")
    return bool(positional)


@dataclass(frozen=True)
class CompiledPartitionPlan:
    """Immutable holder of a model's partitioning callables."""

    model: type
    partitions_fn: Optional[Callable[[], Any]] = None
    partition_fetch_fn: Optional[Callable[[Any], Any]] = None
    before_hook_fn: Optional[Callable[..., Any]] = None
    after_hook_fn: Optional[Callable[..., Any]] = None
    _before_takes_token: bool = field(default=True, init=False, repr=False)
    _after_takes_token: bool = field(default=True, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.before_hook_fn is not None:
            object.__setattr__(
                self, "_before_takes_token", _hook_takes_token(self.before_hook_fn, "before_partition")
            )
        if self.after_hook_fn is not None:
            object.__setattr__(
                self, "_after_takes_token", _hook_takes_token(self.after_hook_fn, "after_partition")
            )

    @property
    def has_partitions(self) -> bool:
        return self.partitions_fn is not None

    @property
    def has_partition_fetch(self) -> bool:
        return self.partition_fetch_fn is not None

    def partitions(self) -> Iterable[Any]:
        """Enumerate partition tokens; empty when no partitions directive exists."""
        if self.partitions_fn is None:
            return []
        result = self.partitions_fn()
        if not isinstance(result, Iterable) or isinstance(result, (str, bytes, bytearray)):
            raise InvalidParams(
                "partitions must return an iterable of partition keys (a list is acceptable); "
                f"got {type(result).__name__}."
            )
        return result

    def partition_fetch_enum(self, partition: Any) -> Iterator[List[Any]]:
        """Return a lazy iterator of validated batches for ``partition``."""
        if self.partition_fetch_fn is None:
            raise ContractViolation(f"partition_fetch not defined for {self.model.__name__}")
        batches = self.partition_fetch_fn(partition)
        if not isinstance(batches, Iterable) or isinstance(batches, (str, bytes, Mapping)):
            raise InvalidParams(
                "partition_fetch must return an iterable yielding lists of records; "
                f"got {type(batches).__name__}."
            )
        return self._validated(batches)

    @staticmethod
    def _validated(batches: Iterable[Any]) -> Iterator[List[Any]]:
        for index, batch in enumerate(batches):
            yield as_batch(batch, index)

    def before_hook(self, partition: Any) -> None:
        if self.before_hook_fn is None:
            return
        if self._before_takes_token:
            self.before_hook_fn(partition)
        else:
            self.before_hook_fn()

    def after_hook(self, partition: Any) -> None:
        if self.after_hook_fn is None:
            return
        if self._after_takes_token:
            self.after_hook_fn(partition)
        else:
            self.after_hook_fn()


def compile_plan(descriptor: ModelDescriptor) -> CompiledPartitionPlan:
    directives = descriptor.directives
    return CompiledPartitionPlan(
        model=descriptor.model,
        partitions_fn=directives.partitions,
        partition_fetch_fn=directives.partition_fetch,
        before_hook_fn=directives.before_partition,
        after_hook_fn=directives.after_partition,
    )


class DirectiveCompiler:
    """Resolve and memoize compiled plans per model class.

    Plans are immutable. Concurrent first lookups may compile twice;
    ``setdefault`` keeps whichever plan landed first.
    """

    def __init__(self, registry: Optional[ModelRegistry] = None) -> None:
        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._plans: Dict[type, CompiledPartitionPlan] = {}

    def plan_for(self, model: type) -> Optional[CompiledPartitionPlan]:
        """Return the cached plan for ``model``, or None when no directive is declared."""
        plan = self._plans.get(model)
        if plan is not None:
            return plan
        descriptor = self._registry.get(model)
        if descriptor is None or not descriptor.directives.any_declared():
            return None
        plan = compile_plan(descriptor)
        logger.debug("Compiled partition plan for %s", model.__name__)
        return self._plans.setdefault(model, plan)


DEFAULT_COMPILER = DirectiveCompiler(DEFAULT_REGISTRY)


def plan_for(model: type) -> Optional[CompiledPartitionPlan]:
    return DEFAULT_COMPILER.plan_for(model)
