"""HTTP client for the Typesense document endpoints used by indexing and bulk updates.

Only three calls are needed:
- JSONL import into a collection
- partial update by filter
- delete by filter

Transport errors are mapped onto :mod:`indexing.errors` so callers never see
``requests`` exceptions. No call is retried here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import TypesenseConfig
from .errors import Api, Connection, InvalidParams, Timeout
from .interfaces import DocumentStore

logger = logging.getLogger(__name__)


class TypesenseClient(DocumentStore):
    API_KEY_HEADER = "X-TYPESENSE-API-KEY"

    def __init__(self, config: TypesenseConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.headers[self.API_KEY_HEADER] = config.api_key

    def import_documents(
        self, collection: str, documents: List[Dict[str, Any]], action: str = "upsert"
    ) -> List[Dict[str, Any]]:
        """Import documents as JSONL; returns the per-document result lines."""
        self._require_collection(collection)
        body = "\n".join(json.dumps(doc, default=str) for doc in documents)
        response = self._request(
            "POST",
            self._documents_path(collection) + "/import",
            params={"action": action},
            data=body.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        results = []
        for line in response.text.splitlines():
            if line.strip():
                results.append(json.loads(line))
        return results

    def update_documents_by_filter(
        self,
        collection: str,
        filter_by: str,
        fields: Dict[str, Any],
        timeout_ms: Optional[int] = None,
    ) -> Dict[str, Any]:
        self._require_collection(collection)
        self._require_filter(filter_by)
        if not isinstance(fields, dict):
            raise InvalidParams(f"fields must be a dict; got {type(fields).__name__}")
        response = self._request(
            "PATCH",
            self._documents_path(collection),
            params={"filter_by": filter_by},
            json=fields,
            timeout_ms=timeout_ms,
        )
        return response.json()

    def delete_documents_by_filter(
        self, collection: str, filter_by: str, timeout_ms: Optional[int] = None
    ) -> Dict[str, Any]:
        self._require_collection(collection)
        self._require_filter(filter_by)
        response = self._request(
            "DELETE",
            self._documents_path(collection),
            params={"filter_by": filter_by},
            timeout_ms=timeout_ms,
        )
        return response.json()

    def _documents_path(self, collection: str) -> str:
        return f"/collections/{quote(collection, safe='')}/documents"

    @staticmethod
    def _require_collection(collection: str) -> None:
        if not isinstance(collection, str) or not collection.strip():
            raise InvalidParams("collection must be a non-empty string")

    @staticmethod
    def _require_filter(filter_by: str) -> None:
        if not isinstance(filter_by, str) or not filter_by.strip():
            raise InvalidParams("filter_by must be a non-empty string")

    def _request(
        self, method: str, path: str, timeout_ms: Optional[int] = None, **kwargs: Any
    ) -> requests.Response:
        url = f"{self._config.base_url}{path}"
        effective_ms = timeout_ms if timeout_ms and timeout_ms > 0 else self._config.timeout_ms
        logger.debug("%s %s timeout_ms=%s", method, url, effective_ms)
        try:
            response = self._session.request(method, url, timeout=effective_ms / 1000.0, **kwargs)
        except requests.exceptions.Timeout as exc:
            logger.error("%s %s timed out after %sms", method, path, effective_ms)
            raise Timeout(f"{method} {path} timed out after {effective_ms}ms") from exc
        except requests.exceptions.ConnectionError as exc:
            logger.error("%s %s connection failed: %s", method, path, exc)
            raise Connection(f"{method} {path} failed to connect: {exc}") from exc

        if not 200 <= response.status_code < 300:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            logger.error("%s %s returned %d: %s", method, path, response.status_code, body)
            raise Api(f"{method} {path} returned {response.status_code}", status=response.status_code, body=body)
        return response
