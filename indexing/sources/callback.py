"""Source adapter delegating batch production to a user callable."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Callable, Iterator, List, Optional

from ..config import DatabaseConfig, SourcesConfig
from ..errors import InvalidParams
from ..partitioner import as_batch
from .base import BaseSource, monotonic_ms


class CallbackSource(BaseSource):
    """Calls ``fn(partition=..., cursor=...)`` and validates each yielded batch."""

    source_name = "lambda"

    def __init__(self, fn: Callable[..., Any]) -> None:
        if not callable(fn):
            raise InvalidParams(f"lambda source requires a callable; got {type(fn).__name__}")
        self._fn = fn

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        callback: Optional[Callable[..., Any]],
        config: SourcesConfig,
        database: DatabaseConfig,
    ) -> "CallbackSource":
        fn = callback if callback is not None else options.get("callable")
        if fn is None:
            raise InvalidParams("lambda source requires a callback or 'callable'")
        return cls(fn)

    def each_batch(self, partition: Any = None, cursor: Any = None) -> Iterator[List[Any]]:
        try:
            batches = self._fn(partition=partition, cursor=cursor)
            if not isinstance(batches, Iterable) or isinstance(batches, (str, bytes, Mapping)):
                raise InvalidParams(
                    "lambda source callable must return an iterable of batches; "
                    f"got {type(batches).__name__}"
                )
            started = monotonic_ms()
            for index, rows in enumerate(batches):
                batch = as_batch(rows, index, producer="lambda source")
                self._log_batch(index, len(batch), monotonic_ms() - started, partition, cursor)
                yield batch
                started = monotonic_ms()
        except Exception as error:
            self._log_error(error, partition, cursor)
            raise
