#!/usr/bin/env python3
"""Tests for bulk update and delete by filter."""

import sys

from indexing.config import PartitioningConfig, UpdateConfig
from indexing.errors import InvalidParams
from indexing.interfaces import DocumentStore
from indexing.registry import ModelRegistry
from indexing.resolver import CollectionResolver
from indexing.update import BulkUpdater


class Product:
    pass


class RecordingStore(DocumentStore):
    """Document store stub recording every call and returning a canned response."""

    def __init__(self, response=None):
        self.response = response
        self.calls = []

    def import_documents(self, collection, documents, action="upsert"):
        self.calls.append(("import", collection, documents, action))
        return [{"success": True} for _ in documents]

    def update_documents_by_filter(self, collection, filter_by, fields, timeout_ms=None):
        self.calls.append(("update", collection, filter_by, fields, timeout_ms))
        return self.response

    def delete_documents_by_filter(self, collection, filter_by, timeout_ms=None):
        self.calls.append(("delete", collection, filter_by, timeout_ms))
        return self.response


def make_updater(store, partitioning=None, update=None):
    registry = ModelRegistry()
    registry.register(Product, collection="products")
    return BulkUpdater(store, CollectionResolver(registry, partitioning), update)


def test_update_by_filter_string():
    store = RecordingStore({"num_updated": 7})
    updater = make_updater(store)

    count = updater.update_by(Product, {"status": "archived"}, filter_by="active:=true")

    assert count == 7
    assert store.calls == [("update", "products", "active:=true", {"status": "archived"}, None)]


def test_update_rejects_empty_attributes():
    store = RecordingStore({"num_updated": 1})
    updater = make_updater(store)

    for attributes in ({}, None, [("status", "archived")]):
        try:
            updater.update_by(Product, attributes, filter_by="active:=true")
        except InvalidParams:
            pass
        else:
            raise AssertionError(f"expected InvalidParams for {attributes!r}")
    assert store.calls == []


def test_update_requires_filter():
    store = RecordingStore({"num_updated": 1})
    updater = make_updater(store)
    try:
        updater.update_by(Product, {"status": "archived"}, where={})
    except InvalidParams:
        pass
    else:
        raise AssertionError("expected InvalidParams for an empty filter")
    assert store.calls == []


def test_update_count_key_spellings():
    for response, expected in (
        ({"updated": 3}, 3),
        ({"numUpdated": "4"}, 4),
        ({"unexpected": 1}, 0),
        ({"num_updated": "n/a"}, 0),
        (None, 0),
    ):
        updater = make_updater(RecordingStore(response))
        assert updater.update_by(Product, {"flag": True}, where={"id": 1}) == expected


def test_update_targets_partition_collection():
    store = RecordingStore({"num_updated": 2})
    updater = make_updater(
        store,
        partitioning=PartitioningConfig(default_into_resolver=lambda model, partition: f"products_{partition}"),
    )

    updater.update_by(Product, {"status": "archived"}, where={"brand_id": 9}, partition="eu", timeout_ms=1500)
    updater.update_by(Product, {"status": "archived"}, where={"brand_id": 9}, into="products_override")

    assert store.calls[0] == ("update", "products_eu", "brand_id:=9", {"status": "archived"}, 1500)
    assert store.calls[1][1] == "products_override"


def test_filter_args_fill_placeholders():
    store = RecordingStore({"num_updated": 1, "num_deleted": 1})
    updater = make_updater(store)

    updater.update_by(Product, {"status": "archived"}, filter_by="brand_id:=? && price:>?", filter_args=[9, 10.5])
    updater.delete_by(Product, filter_by="sku:=?", filter_args=["AB 1"])

    assert store.calls[0][2] == "brand_id:=9 && price:>10.5"
    assert store.calls[1][2] == 'sku:="AB 1"'
    try:
        updater.delete_by(Product, filter_by="sku:=?", filter_args=[])
    except InvalidParams:
        pass
    else:
        raise AssertionError("expected InvalidParams for a placeholder count mismatch")
    assert len(store.calls) == 2


def test_delete_by_uses_default_timeout():
    store = RecordingStore({"num_deleted": 5})
    updater = make_updater(store, update=UpdateConfig(delete_timeout_ms=30000))

    assert updater.delete_by(Product, filter_by="stale:=true") == 5
    assert updater.delete_by(Product, where={"stale": True}, timeout_ms=100) == 5
    assert store.calls == [
        ("delete", "products", "stale:=true", 30000),
        ("delete", "products", "stale:=true", 100),
    ]


def main():
    """Run all tests."""
    print("=" * 60)
    print("Bulk Update Test Suite")
    print("=" * 60)

    tests = [
        ("Update by filter string", test_update_by_filter_string),
        ("Empty attributes", test_update_rejects_empty_attributes),
        ("Filter required", test_update_requires_filter),
        ("Count key spellings", test_update_count_key_spellings),
        ("Partition collection", test_update_targets_partition_collection),
        ("Filter args", test_filter_args_fill_placeholders),
        ("Delete timeout", test_delete_by_uses_default_timeout),
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
