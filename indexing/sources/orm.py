"""SQLAlchemy-backed source yielding mapped instances in batches.

Streams with ``yield_per`` so only one batch of rows is held at a time, and
expunges each batch's instances once the consumer asks for the next. The
identity map itself stays in place while the result is open.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any, Callable, Iterator, List, Mapping, Optional

from sqlalchemy import create_engine, inspect, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import Select

from ..config import DatabaseConfig, SourcesConfig
from ..errors import InvalidParams
from .base import BaseSource, monotonic_ms


class OrmSource(BaseSource):
    source_name = "orm"

    def __init__(
        self,
        model: type,
        session_factory: Callable[[], Session],
        scope: Optional[Callable[[Select], Select]] = None,
        batch_size: int = 2000,
        use_transaction: bool = False,
        readonly: bool = True,
    ) -> None:
        """
        Args:
            model: SQLAlchemy mapped class.
            session_factory: zero-arg callable returning a ``Session``.
            scope: optional callable narrowing the base ``select(model)``.
            batch_size: rows per yielded batch.
            use_transaction: wrap the stream in ``session.begin()``.
            readonly: disable autoflush while streaming.
        """
        self._model = model
        self._session_factory = session_factory
        self._scope = scope
        self._batch_size = int(batch_size)
        self._use_transaction = use_transaction
        self._readonly = readonly

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        callback: Optional[Callable[..., Any]],
        config: SourcesConfig,
        database: DatabaseConfig,
    ) -> "OrmSource":
        model = options.get("model")
        if not isinstance(model, type):
            raise InvalidParams(
                f"orm source requires 'model' (a mapped class); got {type(model).__name__}"
            )
        scope = options.get("scope")
        if scope is not None and not callable(scope):
            raise InvalidParams(f"orm source 'scope' must be callable; got {type(scope).__name__}")

        session_factory = options.get("session_factory")
        if session_factory is None:
            if not database.url:
                raise InvalidParams("orm source requires 'session_factory' or database.url")
            session_factory = sessionmaker(bind=create_engine(database.url))

        batch_size = options.get("batch_size")
        use_transaction = options.get("use_transaction")
        readonly = options.get("readonly")
        return cls(
            model=model,
            session_factory=session_factory,
            scope=scope,
            batch_size=batch_size if batch_size is not None else config.batch_size,
            use_transaction=config.use_transaction if use_transaction is None else use_transaction is True,
            readonly=config.readonly if readonly is None else readonly is True,
        )

    def each_batch(self, partition: Any = None, cursor: Any = None) -> Iterator[List[Any]]:
        statement = self._base_statement()
        if partition is not None:
            statement = self._apply_partition(statement, partition)
        if cursor is not None:
            statement = self._apply_cursor(statement, cursor)

        try:
            with self._session_factory() as session:
                txn = session.begin() if self._use_transaction else nullcontext()
                flush_guard = session.no_autoflush if self._readonly else nullcontext()
                with txn, flush_guard:
                    result = session.scalars(statement.execution_options(yield_per=self._batch_size))
                    started = monotonic_ms()
                    for index, rows in enumerate(result.partitions(self._batch_size)):
                        batch = list(rows)
                        self._log_batch(index, len(batch), monotonic_ms() - started, partition, cursor)
                        yield batch
                        for instance in batch:
                            session.expunge(instance)
                        started = monotonic_ms()
        except Exception as error:
            self._log_error(error, partition, cursor)
            raise

    def _base_statement(self) -> Select:
        statement = select(self._model)
        if self._scope is not None:
            statement = self._scope(statement)
        return statement

    def _primary_key(self):
        return inspect(self._model).primary_key[0]

    def _apply_partition(self, statement: Select, partition: Any) -> Select:
        if isinstance(partition, Mapping):
            return statement.filter_by(**partition)
        if isinstance(partition, range):
            pk = self._primary_key()
            return statement.where(pk >= partition.start, pk < partition.stop)
        if isinstance(partition, tuple) and len(partition) == 2:
            pk = self._primary_key()
            low, high = partition
            return statement.where(pk >= low, pk <= high)
        return statement

    def _apply_cursor(self, statement: Select, cursor: Any) -> Select:
        if isinstance(cursor, Mapping):
            return statement.filter_by(**cursor)
        pk = self._primary_key()
        return statement.where(pk > cursor).order_by(pk.asc())
