"""High-level partitioned indexing orchestration."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

from .config import AppConfig
from .errors import InvalidParams
from .interfaces import DocumentStore
from .models import IndexResult, ModelDescriptor, PartitionResult
from .partitioner import CompiledPartitionPlan, DirectiveCompiler
from .registry import DEFAULT_REGISTRY, ModelRegistry
from .resolver import CollectionResolver
from .sources.base import SourceFactory, monotonic_ms
from .sources.registry import build_default_factory

logger = logging.getLogger(__name__)

ERRORS_SAMPLE_SIZE = 5


class IndexingPipeline:
    def __init__(
        self,
        config: AppConfig,
        store: DocumentStore,
        registry: Optional[ModelRegistry] = None,
        compiler: Optional[DirectiveCompiler] = None,
        source_factory: Optional[SourceFactory] = None,
        resolver: Optional[CollectionResolver] = None,
    ) -> None:
        self._config = config
        self._store = store
        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._compiler = compiler or DirectiveCompiler(self._registry)
        self._source_factory = source_factory or build_default_factory(config.sources, config.database)
        self._resolver = resolver or CollectionResolver(self._registry, config.partitioning)

    @property
    def resolver(self) -> CollectionResolver:
        return self._resolver

    def run(self, model: type) -> IndexResult:
        """Index every partition of ``model`` in the order ``partitions()`` yields them.

        A failure in any partition propagates and stops the run.
        """
        descriptor = self._registry.require(model)
        plan = self._compiler.plan_for(model)
        result = IndexResult(model_name=model.__name__)

        partitions = plan.partitions() if plan is not None and plan.has_partitions else [None]
        for partition in partitions:
            result.partitions.append(self._index_partition(descriptor, plan, partition, into=None))

        logger.info(
            "Indexed %s: %d partitions, %d documents, %d failures",
            model.__name__,
            len(result.partitions),
            result.documents,
            result.failures,
        )
        return result

    def rebuild_partition(self, model: type, partition: Any = None, into: Optional[str] = None) -> PartitionResult:
        descriptor = self._registry.require(model)
        plan = self._compiler.plan_for(model)
        return self._index_partition(descriptor, plan, partition, into)

    def _index_partition(
        self,
        descriptor: ModelDescriptor,
        plan: Optional[CompiledPartitionPlan],
        partition: Any,
        into: Optional[str],
    ) -> PartitionResult:
        collection = self._resolver.resolve_into(descriptor.model, partition=partition, into=into)
        result = PartitionResult(
            model_name=descriptor.model.__name__,
            collection=collection,
            partition=partition,
        )
        started = monotonic_ms()
        logger.info("Partition start model=%s partition=%r into=%s", result.model_name, partition, collection)

        # before_partition never runs without a partition token.
        if plan is not None and partition is not None:
            plan.before_hook(partition)
        elif plan is not None and plan.before_hook_fn is not None:
            logger.info("Skipping before_partition for %s: no partition token", result.model_name)

        for batch in self._batches_for(descriptor, plan, partition):
            documents = [self._map_record(descriptor, record) for record in batch]
            if not documents:
                continue
            outcomes = self._store.import_documents(collection, documents, action="upsert")
            result.batches += 1
            for outcome in outcomes:
                if outcome.get("success", True):
                    result.documents += 1
                else:
                    result.failures += 1
                    if len(result.errors_sample) < ERRORS_SAMPLE_SIZE:
                        result.errors_sample.append(str(outcome.get("error", ""))[:200])
            logger.debug(
                "Imported batch %d into %s (%d documents)", result.batches, collection, len(documents)
            )

        if plan is not None:
            plan.after_hook(partition)

        result.duration_ms = monotonic_ms() - started
        logger.info(
            "Partition finish model=%s partition=%r into=%s documents=%d failures=%d duration_ms=%.1f",
            result.model_name,
            partition,
            collection,
            result.documents,
            result.failures,
            result.duration_ms,
        )
        return result

    def _batches_for(
        self,
        descriptor: ModelDescriptor,
        plan: Optional[CompiledPartitionPlan],
        partition: Any,
    ) -> Iterator[List[Any]]:
        if plan is not None and plan.has_partition_fetch:
            return plan.partition_fetch_enum(partition)
        source = descriptor.source
        if source is None:
            raise InvalidParams(
                f"no partition_fetch directive and no source defined for {descriptor.model.__name__}"
            )
        adapter = self._source_factory.build(source.type, source.options, source.callback)
        return adapter.each_batch(partition=partition)

    @staticmethod
    def _map_record(descriptor: ModelDescriptor, record: Any) -> Dict[str, Any]:
        if descriptor.mapper is not None:
            return descriptor.mapper(record)
        if isinstance(record, dict):
            return record
        raise InvalidParams(
            f"records for {descriptor.model.__name__} must be dicts when no mapper is defined; "
            f"got {type(record).__name__}"
        )
