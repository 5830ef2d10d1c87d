"""Raw SQL source streaming rows through a PostgreSQL server-side cursor."""

from __future__ import annotations

from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence, Union

import psycopg2
import psycopg2.extras

from ..config import DatabaseConfig, SourcesConfig
from ..errors import InvalidParams
from .base import BaseSource, monotonic_ms


ROW_SHAPES = ("hash", "tuple")


class SqlSource(BaseSource):
    """Yields lists of rows fetched ``fetch_size`` at a time.

    Rows are dicts for the ``hash`` shape and tuples for ``tuple``. The cursor
    and connection are always closed, including when the consumer stops early.
    A mapping partition is merged into mapping binds so statements can filter
    on it with ``%(name)s`` placeholders.
    """

    source_name = "sql"

    def __init__(
        self,
        sql: str,
        connect: Callable[[], Any],
        binds: Optional[Union[Sequence[Any], Mapping[str, Any]]] = None,
        fetch_size: int = 2000,
        row_shape: str = "hash",
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._sql = sql
        self._connect = connect
        self._binds = binds
        self._fetch_size = int(fetch_size)
        self._row_shape = row_shape
        self._statement_timeout_ms = statement_timeout_ms

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        callback: Optional[Callable[..., Any]],
        config: SourcesConfig,
        database: DatabaseConfig,
    ) -> "SqlSource":
        sql = options.get("sql")
        if not isinstance(sql, str) or not sql.strip():
            raise InvalidParams("sql source requires 'sql' (a non-empty string)")

        binds = options.get("binds")
        if binds is not None and not isinstance(binds, (list, tuple, Mapping)):
            raise InvalidParams(
                f"sql source 'binds' must be a list, tuple or mapping; got {type(binds).__name__}"
            )

        row_shape = options.get("row_shape") or config.row_shape
        if row_shape not in ROW_SHAPES:
            raise InvalidParams(f"sql source 'row_shape' must be one of {ROW_SHAPES}; got {row_shape!r}")

        connect = options.get("connect")
        if connect is None:
            if not database.dsn:
                raise InvalidParams("sql source requires 'connect' or database.dsn")
            dsn = database.dsn
            connect = lambda: psycopg2.connect(dsn)  # noqa: E731

        fetch_size = options.get("fetch_size")
        timeout = options.get("statement_timeout_ms")
        return cls(
            sql=sql,
            connect=connect,
            binds=binds,
            fetch_size=fetch_size if fetch_size is not None else config.fetch_size,
            row_shape=row_shape,
            statement_timeout_ms=timeout if timeout is not None else config.statement_timeout_ms,
        )

    def each_batch(self, partition: Any = None, cursor: Any = None) -> Iterator[List[Any]]:
        conn = self._connect()
        try:
            with conn:
                if self._statement_timeout_ms:
                    with conn.cursor() as setup:
                        setup.execute("SET LOCAL statement_timeout = %s", (int(self._statement_timeout_ms),))
                cursor_factory = psycopg2.extras.RealDictCursor if self._row_shape == "hash" else None
                with conn.cursor(name=f"indexing_cursor_{id(self):x}", cursor_factory=cursor_factory) as cur:
                    cur.itersize = self._fetch_size
                    cur.execute(self._sql, self._params_for(partition))
                    index = 0
                    started = monotonic_ms()
                    while True:
                        rows = cur.fetchmany(self._fetch_size)
                        if not rows:
                            break
                        if self._row_shape == "hash":
                            batch = [dict(row) for row in rows]
                        else:
                            batch = [tuple(row) for row in rows]
                        self._log_batch(index, len(batch), monotonic_ms() - started, partition, cursor)
                        yield batch
                        index += 1
                        started = monotonic_ms()
        except Exception as error:
            self._log_error(error, partition, cursor)
            raise
        finally:
            conn.close()

    def _params_for(self, partition: Any) -> Optional[Union[Sequence[Any], Mapping[str, Any]]]:
        if isinstance(partition, Mapping):
            if self._binds is None:
                return dict(partition)
            if isinstance(self._binds, Mapping):
                return {**self._binds, **partition}
        return self._binds
