#!/usr/bin/env python3
"""Tests for the Typesense document client using a fake requests session."""

import json
import sys

import requests

from indexing.client import TypesenseClient
from indexing.config import TypesenseConfig
from indexing.errors import Api, Connection, InvalidParams, Timeout


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.requests = []
        self.response = response
        self.error = error

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def make_client(session):
    return TypesenseClient(TypesenseConfig(host="search.local", api_key="secret", timeout_ms=2000), session=session)


def test_update_by_filter_request():
    session = FakeSession(FakeResponse(payload={"num_updated": 7}))
    client = make_client(session)

    response = client.update_documents_by_filter("products", "active:=true", {"status": "archived"}, timeout_ms=500)

    assert response == {"num_updated": 7}
    assert session.headers["X-TYPESENSE-API-KEY"] == "secret"
    method, url, kwargs = session.requests[0]
    assert method == "PATCH"
    assert url == "http://search.local:8108/collections/products/documents"
    assert kwargs["params"] == {"filter_by": "active:=true"}
    assert kwargs["json"] == {"status": "archived"}
    assert kwargs["timeout"] == 0.5


def test_delete_uses_configured_timeout():
    session = FakeSession(FakeResponse(payload={"num_deleted": 2}))
    client = make_client(session)

    assert client.delete_documents_by_filter("products", "stale:=true") == {"num_deleted": 2}
    method, _url, kwargs = session.requests[0]
    assert method == "DELETE"
    assert kwargs["timeout"] == 2.0


def test_import_parses_jsonl():
    body = '{"success": true}\n{"success": false, "error": "Bad"}\n'
    session = FakeSession(FakeResponse(text=body))
    client = make_client(session)

    results = client.import_documents("products", [{"id": "1"}, {"id": "2"}])

    assert results == [{"success": True}, {"success": False, "error": "Bad"}]
    method, url, kwargs = session.requests[0]
    assert method == "POST"
    assert url.endswith("/collections/products/documents/import")
    assert kwargs["params"] == {"action": "upsert"}
    assert kwargs["data"] == b'{"id": "1"}\n{"id": "2"}'


def test_argument_validation():
    client = make_client(FakeSession(FakeResponse(payload={})))
    for call in (
        lambda: client.update_documents_by_filter("", "a:=1", {}),
        lambda: client.update_documents_by_filter("products", " ", {}),
        lambda: client.delete_documents_by_filter("products", ""),
    ):
        try:
            call()
        except InvalidParams:
            pass
        else:
            raise AssertionError("expected InvalidParams")


def test_error_mapping():
    cases = (
        (FakeSession(error=requests.exceptions.ReadTimeout("slow")), Timeout),
        (FakeSession(error=requests.exceptions.ConnectionError("refused")), Connection),
        (FakeSession(FakeResponse(status_code=404, payload={"message": "Not Found"})), Api),
    )
    for session, expected in cases:
        try:
            make_client(session).delete_documents_by_filter("products", "a:=1")
        except expected as exc:
            if isinstance(exc, Api):
                assert exc.status == 404
                assert exc.body == {"message": "Not Found"}
        else:
            raise AssertionError(f"expected {expected.__name__}")


def main():
    """Run all tests."""
    print("=" * 60)
    print("Typesense Client Test Suite")
    print("=" * 60)

    tests = [
        ("Update by filter", test_update_by_filter_request),
        ("Delete timeout", test_delete_uses_configured_timeout),
        ("Import JSONL", test_import_parses_jsonl),
        ("Argument validation", test_argument_validation),
        ("Error mapping", test_error_mapping),
    ]

    failed = 0
    for test_name, test_func in tests:
        try:
            test_func()
            print(f"✓ {test_name}")
        except AssertionError as e:
            print(f"✗ {test_name} FAILED: {e}")
            failed += 1
        except Exception as e:
            print(f"✗ {test_name} ERROR: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {len(tests) - failed}/{len(tests)} tests passed")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
