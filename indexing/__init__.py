"""Indexing package exposing the public API for partitioned indexing and bulk updates."""

from .config import AppConfig
from .errors import ContractViolation, InvalidParams, RemoteFailure
from .partitioner import CompiledPartitionPlan, DirectiveCompiler
from .pipeline import IndexingPipeline
from .registry import DEFAULT_REGISTRY, ModelRegistry
from .resolver import CollectionResolver
from .update import BulkUpdater

__all__ = [
    "AppConfig",
    "BulkUpdater",
    "CollectionResolver",
    "CompiledPartitionPlan",
    "ContractViolation",
    "DEFAULT_REGISTRY",
    "DirectiveCompiler",
    "IndexingPipeline",
    "InvalidParams",
    "ModelRegistry",
    "RemoteFailure",
]
