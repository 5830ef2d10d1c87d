"""Source adapters yielding record batches for indexing."""

from .base import BaseSource, SourceFactory, SourceType
from .callback import CallbackSource
from .orm import OrmSource
from .registry import build_default_factory
from .sql import SqlSource

__all__ = [
    "BaseSource",
    "CallbackSource",
    "OrmSource",
    "SourceFactory",
    "SourceType",
    "SqlSource",
    "build_default_factory",
]
