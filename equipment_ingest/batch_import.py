"""Replay a saved batch JSON file through the ingest pipeline."""
from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Dict

from equipment_shared.config import IngestSettings
from equipment_shared.logging_config import configure_logging

from .env_loader import load_project_dotenv
from .pipeline import BatchRequestError, process_batch


def load_batch_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Batch file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, list):
        payload = {"rows": payload}
    return payload


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a batch of equipment rows into the store.")
    parser.add_argument("batch_file", help="JSON file: {sheet, rows: [...]} or a bare rows array.")
    parser.add_argument(
        "--database-url",
        help="Overrides DATABASE_URL (sqlite:///path or a plain file path).",
    )
    parser.add_argument(
        "--no-catalog",
        action="store_true",
        default=False,
        help="Skip the catalog sync even when CATALOG_API_KEY is set.",
    )
    parser.add_argument("--json", action="store_true", help="Print the full response body as JSON.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    load_project_dotenv()
    configure_logging()

    settings = IngestSettings.from_env()
    overrides: Dict[str, Any] = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.no_catalog:
        overrides["catalog_api_key"] = ""
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    try:
        result = process_batch(load_batch_file(Path(args.batch_file)), settings)
    except (BatchRequestError, FileNotFoundError, json.JSONDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2, default=str))
    else:
        print(f"{result['message']} - stored: {result['processed']}, errors: {result['errors']}")
        for detail in result["errorDetails"]:
            print(f"  row {detail['rowNumber']}: {detail['error']}", file=sys.stderr)
    return 0 if result["errors"] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
