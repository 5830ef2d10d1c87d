"""Source registry mapping type tags to adapter implementations."""

from __future__ import annotations

from typing import Dict, Optional, Type

from ..config import DatabaseConfig, SourcesConfig
from .base import BaseSource, SourceFactory, SourceType
from .callback import CallbackSource
from .orm import OrmSource
from .sql import SqlSource


def build_default_factory(
    config: Optional[SourcesConfig] = None, database: Optional[DatabaseConfig] = None
) -> SourceFactory:
    registry: Dict[str, Type[BaseSource]] = {
        SourceType.ORM.value: OrmSource,
        SourceType.SQL.value: SqlSource,
        SourceType.LAMBDA.value: CallbackSource,
    }
    return SourceFactory(
        registry,
        config=config or SourcesConfig(),
        database=database or DatabaseConfig(),
    )
