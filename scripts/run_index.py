"""CLI entrypoint to index models and run bulk updates locally."""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from indexing.client import TypesenseClient
from indexing.config import AppConfig, DEFAULT_CONFIG
from indexing.errors import IndexingError
from indexing.pipeline import IndexingPipeline
from indexing.registry import DEFAULT_REGISTRY
from indexing.update import BulkUpdater


def load_env_file(env_path: str = ".env") -> None:
    """Load environment variables from .env file."""
    env_file = Path(ROOT) / env_path
    if not env_file.exists():
        logging.debug("Environment file not found: %s", env_path)
        return

    logging.info("Loading environment from: %s", env_path)
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                if key.strip() not in os.environ:
                    os.environ[key.strip()] = value.strip()


def expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR} and $VAR references in config."""
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    if isinstance(data, str):
        def replacer(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        return re.sub(r"\$\{(\w+)\}|\$(\w+)", replacer, data)
    return data


def parse_pairs(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Turn ``key=value`` arguments into a dict, decoding JSON values when possible."""
    result: Dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(f"expected key=value, got {pair!r}")
        key, raw = pair.split("=", 1)
        try:
            result[key] = json.loads(raw)
        except ValueError:
            result[key] = raw
    return result


def parse_values(values: Optional[List[str]]) -> Optional[List[Any]]:
    """Decode repeated CLI values as JSON where possible; None when none were given."""
    if values is None:
        return None
    return [parse_pairs([f"value={raw}"])["value"] for raw in values]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run partitioned indexing and bulk updates")
    parser.add_argument("--config", type=Path, help="Optional path to a JSON config file overriding defaults")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Verbosity for logging output",
    )
    parser.add_argument("--env-file", default=".env", help="Path to .env file (default: .env)")
    parser.add_argument(
        "--models",
        required=True,
        help="Importable module that registers models on the default registry",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    index = commands.add_parser("index", help="Index a model, or one partition of it")
    index.add_argument("model")
    index.add_argument("--partition", help="JSON-decoded partition token")
    index.add_argument("--into", help="Explicit collection name")

    update = commands.add_parser("update", help="Update documents matching a filter")
    update.add_argument("model")
    update.add_argument("--set", dest="attributes", nargs="+", required=True, metavar="KEY=VALUE")
    update.add_argument("--filter", dest="filter_by")
    update.add_argument(
        "--filter-arg",
        dest="filter_args",
        action="append",
        metavar="VALUE",
        help="JSON-decoded value for the next ? in --filter (repeatable)",
    )
    update.add_argument("--where", nargs="+", metavar="KEY=VALUE")
    update.add_argument("--into")
    update.add_argument("--timeout-ms", type=int)

    delete = commands.add_parser("delete", help="Delete documents matching a filter")
    delete.add_argument("model")
    delete.add_argument("--filter", dest="filter_by")
    delete.add_argument(
        "--filter-arg",
        dest="filter_args",
        action="append",
        metavar="VALUE",
        help="JSON-decoded value for the next ? in --filter (repeatable)",
    )
    delete.add_argument("--where", nargs="+", metavar="KEY=VALUE")
    delete.add_argument("--into")
    delete.add_argument("--timeout-ms", type=int)

    return parser.parse_args(argv)


def load_config(path: Optional[Path]) -> AppConfig:
    if not path:
        return DEFAULT_CONFIG
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = json.load(f)

    return AppConfig.from_dict(expand_env_vars(raw_config))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    load_env_file(args.env_file)

    config = load_config(args.config)
    importlib.import_module(args.models)
    model = DEFAULT_REGISTRY.find(args.model)
    if model is None:
        logging.error("Unknown model %s (registered: %s)", args.model, ", ".join(
            m.__name__ for m in DEFAULT_REGISTRY.descriptors
        ))
        return 2

    client = TypesenseClient(config.typesense)
    pipeline = IndexingPipeline(config, client)

    try:
        if args.command == "index":
            if args.partition is not None:
                partition = parse_pairs([f"partition={args.partition}"])["partition"]
                result = pipeline.rebuild_partition(model, partition=partition, into=args.into)
                logging.info("Partition %r: %d documents, %d failures", partition, result.documents, result.failures)
            else:
                summary = pipeline.run(model)
                logging.info("%s: %d documents, %d failures", summary.model_name, summary.documents, summary.failures)
        else:
            updater = BulkUpdater(client, pipeline.resolver, config.update)
            where = parse_pairs(args.where) or None
            if args.command == "update":
                count = updater.update_by(
                    model,
                    parse_pairs(args.attributes),
                    filter_by=args.filter_by,
                    where=where,
                    into=args.into,
                    timeout_ms=args.timeout_ms,
                    filter_args=parse_values(args.filter_args),
                )
            else:
                count = updater.delete_by(
                    model,
                    filter_by=args.filter_by,
                    where=where,
                    into=args.into,
                    timeout_ms=args.timeout_ms,
                    filter_args=parse_values(args.filter_args),
                )
            verb = "Updated" if args.command == "update" else "Deleted"
            logging.info("%s %d documents", verb, count)
    except IndexingError as exc:
        logging.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
