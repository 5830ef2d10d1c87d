"""Configuration models and helpers for the indexing service."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import json


@dataclass
class TypesenseConfig:
    """Connection settings for the document store."""

    host: str = "localhost"
    port: int = 8108
    protocol: str = "http"
    api_key: str = ""
    timeout_ms: int = 5000

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"


@dataclass
class DatabaseConfig:
    """Relational source settings.

    ``url`` is a SQLAlchemy URL used by ORM sources; ``dsn`` is handed to
    psycopg2 by raw SQL sources.
    """

    url: Optional[str] = None
    dsn: Optional[str] = None


@dataclass
class SourcesConfig:
    """Defaults applied by source adapters when options omit them."""

    batch_size: int = 2000
    use_transaction: bool = False
    readonly: bool = True
    fetch_size: int = 2000
    row_shape: str = "hash"
    statement_timeout_ms: Optional[int] = None


@dataclass
class PartitioningConfig:
    """Collection resolution for partitioned indexing.

    ``default_into_resolver`` is called as ``resolver(model)`` or
    ``resolver(model, partition)`` and may return a collection name.
    """

    default_into_resolver: Optional[Callable[..., Optional[str]]] = None


@dataclass
class UpdateConfig:
    """Bulk update/delete settings."""

    delete_timeout_ms: Optional[int] = None


@dataclass
class AppConfig:
    """Top-level configuration for indexing and bulk updates."""

    typesense: TypesenseConfig = field(default_factory=TypesenseConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    partitioning: PartitioningConfig = field(default_factory=PartitioningConfig)
    update: UpdateConfig = field(default_factory=UpdateConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        return cls(
            typesense=TypesenseConfig(**data.get("typesense", {})),
            database=DatabaseConfig(**data.get("database", {})),
            sources=SourcesConfig(**data.get("sources", {})),
            update=UpdateConfig(**data.get("update", {})),
        )

    @classmethod
    def from_json(cls, path: Path) -> "AppConfig":
        data = json.loads(path.read_text())
        return cls.from_dict(data)


DEFAULT_CONFIG = AppConfig(
    typesense=TypesenseConfig(host="localhost", port=8108, api_key="xyz"),
    database=DatabaseConfig(url="sqlite:///./_data/app.db"),
)
