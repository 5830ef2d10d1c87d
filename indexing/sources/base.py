"""Utilities shared across source adapter implementations."""

from __future__ import annotations

import logging
import time
from abc import abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Type, Union

from ..config import DatabaseConfig, SourcesConfig
from ..errors import InvalidParams
from ..interfaces import SourceAdapter

logger = logging.getLogger(__name__)


class SourceType(str, Enum):
    ORM = "orm"
    SQL = "sql"
    LAMBDA = "lambda"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class BaseSource(SourceAdapter):
    """Adapter base providing batch/error logging."""

    source_name = "base"

    @classmethod
    @abstractmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        callback: Optional[Callable[..., Any]],
        config: SourcesConfig,
        database: DatabaseConfig,
    ) -> "BaseSource":
        """Build an adapter from factory options, validating them up front."""

    def _log_batch(self, index: int, rows: int, duration_ms: float, partition: Any, cursor: Any) -> None:
        logger.debug(
            "source=%s batch=%d rows=%d duration_ms=%.1f partition=%r cursor=%r",
            self.source_name,
            index,
            rows,
            duration_ms,
            partition,
            cursor,
        )

    def _log_error(self, error: BaseException, partition: Any, cursor: Any) -> None:
        logger.error(
            "source=%s failed partition=%r cursor=%r: %s: %s",
            self.source_name,
            partition,
            cursor,
            type(error).__name__,
            str(error)[:200],
        )


@dataclass
class SourceFactory:
    """Registry-backed factory for source adapters."""

    registry: Dict[str, Type[BaseSource]]
    config: SourcesConfig = field(default_factory=SourcesConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def build(
        self,
        source_type: Union[str, SourceType],
        options: Optional[Mapping[str, Any]] = None,
        callback: Optional[Callable[..., Any]] = None,
    ) -> SourceAdapter:
        tag = source_type.value if isinstance(source_type, SourceType) else str(source_type)
        try:
            source_cls = self.registry[tag]
        except KeyError as exc:
            supported = ", ".join(sorted(self.registry))
            raise InvalidParams(f"unknown source type: {source_type!r}. Supported: {supported}") from exc
        return source_cls.from_options(dict(options or {}), callback, self.config, self.database)
