"""Error hierarchy shared by the compiler, source factory, filters and client."""

from __future__ import annotations

from typing import Any, Optional


class IndexingError(Exception):
    """Base error for all indexing failures."""


class InvalidParams(IndexingError, ValueError):
    """Raised when caller-supplied values violate a documented contract.

    Covers bad return shapes from directive callables, missing adapter
    options, empty filters and empty update attributes.
    """


class ContractViolation(IndexingError, RuntimeError):
    """Raised on programmer misuse, e.g. fetching a partition without a fetch directive."""


class RemoteFailure(IndexingError):
    """Base class for failures raised by the document store transport."""


class Timeout(RemoteFailure):
    """The request exceeded its timeout budget."""


class Connection(RemoteFailure):
    """The document store could not be reached."""


class Api(RemoteFailure):
    """The document store answered with a non-2xx status."""

    def __init__(self, message: str, status: int, body: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
