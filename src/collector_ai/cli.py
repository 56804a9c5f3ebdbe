"""Command-line interface for CollectorAI session state."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from collector_ai.config import Settings
from collector_ai.exporter import JsonExporter
from collector_ai.providers import list_providers
from collector_ai.store import CheckpointStore, StoreCorruptedError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collector-ai",
        description="Inspect and control resumable collection sessions.",
    )
    parser.add_argument(
        "--state-dir",
        default=None,
        help="Session state directory (default: from .env COLLECTOR_STATE_DIR)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Print the persisted session as JSON")
    sub.add_parser("stop", help="Ask the running session to finish at its next pause")
    export = sub.add_parser("export", help="Write the buffered records without ending the session")
    export.add_argument(
        "-o", "--output",
        default=None,
        help="Output file path (default: output/collected_<timestamp>.json)",
    )
    sub.add_parser("clear", help="Delete all session state (also recovers from a corrupted store)")
    sub.add_parser("providers", help="List evaluator providers")
    return parser


def _status(store: CheckpointStore) -> dict:
    checkpoint = store.load()
    if checkpoint is None:
        return {"active": False, "session": None}
    stats = checkpoint.stats
    return {
        "active": checkpoint.active,
        "session": {
            "mode": checkpoint.mode.value,
            "start_page": checkpoint.start_page,
            "current_page": checkpoint.current_page,
            "target_page_count": "all" if checkpoint.unbounded else checkpoint.target_page_count,
            "pages_scanned": checkpoint.pages_scanned,
            "item_index": checkpoint.cursor.index,
            "items_on_page": len(checkpoint.cursor.item_ids),
            "buffered": len(checkpoint.buffer),
            "ai_enabled": checkpoint.ai_enabled,
            "two_tier": checkpoint.two_tier,
            "evaluated": stats.evaluated,
            "accepted": stats.accepted,
            "formats": checkpoint.formats,
        },
    }


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings = Settings.from_env()

    if args.command == "providers":
        ready = set(list_providers(settings))
        for name in list_providers():
            default = " (default)" if name == settings.default_provider else ""
            status = "ready" if name in ready else "no API key"
            print(f"{name}{default}: {status}")
        return 0

    store = CheckpointStore.at(args.state_dir or settings.state_dir)

    if args.command == "clear":
        store.clear()
        print("Session state cleared")
        return 0

    try:
        if args.command == "status":
            print(json.dumps(_status(store), indent=2, ensure_ascii=False))
        elif args.command == "stop":
            if not store.is_active():
                print("No active session")
                return 1
            store.request_stop()
            print("Stop requested; the session will finish at its next pause")
        elif args.command == "export":
            checkpoint = store.load()
            if checkpoint is None or not checkpoint.buffer:
                print("Nothing to export")
                return 1
            path = JsonExporter().write_json(checkpoint.buffer, args.output)
            print(f"Output written to {path}")
    except StoreCorruptedError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print("Run 'collector-ai clear' to reset the session state.", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
