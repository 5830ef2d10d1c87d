#!/usr/bin/env python3
"""Tests for the indexing CLI helpers."""

import os
import sys

from scripts.run_index import expand_env_vars, main, parse_pairs, parse_values


def test_parse_pairs_decodes_json():
    assert parse_pairs(["status=archived", "brand_id=[1, 2]", "active=true"]) == {
        "status": "archived",
        "brand_id": [1, 2],
        "active": True,
    }
    assert parse_pairs(None) == {}


def test_parse_values_keeps_order():
    assert parse_values(["9", "AB 1", "true"]) == [9, "AB 1", True]
    assert parse_values(None) is None


def test_expand_env_vars():
    os.environ["INDEXING_TEST_KEY"] = "abc"
    data = {"typesense": {"api_key": "${INDEXING_TEST_KEY}", "hosts": ["$INDEXING_TEST_KEY", "$MISSING_VAR_X"]}}
    assert expand_env_vars(data) == {"typesense": {"api_key": "abc", "hosts": ["abc", "$MISSING_VAR_X"]}}


def test_unknown_model_exit_code():
    assert main(["--models", "json", "--env-file", "missing.env", "index", "NoSuchModel"]) == 2


def main_runner():
    """Run all tests."""
    print("=" * 60)
    print("CLI Test Suite")
    print("=" * 60)

    tests = [
        ("Parse pairs", test_parse_pairs_decodes_json),
        ("Parse values", test_parse_values_keeps_order),
        ("Expand env vars", test_expand_env_vars),
        ("Unknown model", test_unknown_model_exit_code),
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
    main_runner()
