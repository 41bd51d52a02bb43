from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from iposync.config.loader import load_config
from iposync.data.storage.paths import tasks_store_path
from iposync.jobs import sync_ipos
from iposync.validate.tasks import validate_tasks_file


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iposync")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync-ipos", help="Fetch upcoming IPOs and upsert them as tasks")
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Upsert into an in-memory store and write nothing",
    )

    subparsers.add_parser("check-tasks", help="Validate the stored task table")

    return parser


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    cfg = load_config(config_path=args.config)

    if args.command == "sync-ipos":
        result = sync_ipos.run(cfg, dry_run=args.dry_run)
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    if args.command == "check-tasks":
        path = tasks_store_path(cfg)
        if not path.exists():
            print(f"Task store not found: {path}", file=sys.stderr)
            return 1
        report = validate_tasks_file(path)
        print(json.dumps(report, indent=2))
        return 0 if report["pass"] else 1

    return 2


if __name__ == "__main__":
    sys.exit(main())
