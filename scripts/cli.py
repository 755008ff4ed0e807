"""CLI entry point for the Help Scout Exporter."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from helpscout_exporter.config.settings import HelpScoutExporterSettings
from helpscout_exporter.core.converter import PlainTextConverter
from helpscout_exporter.core.exceptions import HelpScoutExporterError
from helpscout_exporter.core.models import ExportProgress
from helpscout_exporter.pipeline.exporter import HelpScoutExporter
from helpscout_exporter.storage.writer import repair_unterminated


def setup_logging(level: str) -> None:
    """Configure logging with timestamp and module info."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def on_progress(progress: ExportProgress) -> None:
    """Print progress updates to stdout."""
    print(
        f"[{progress.current_stage}] "
        f"mailboxes={progress.mailboxes_fetched} "
        f"conversations={progress.conversations_fetched} "
        f"threads={progress.threads_fetched} "
        f"thread_failures={progress.thread_fetches_failed}",
        end="\r",
        flush=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Help Scout Exporter - Export mailboxes and conversations to JSON"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    export_parser = subparsers.add_parser("export", help="Export all mailboxes and conversations")
    export_parser.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        default=None,
        dest="output_dir",
        help="Destination directory (default: from settings)",
    )

    subparsers.add_parser("list-mailboxes", help="List mailboxes without exporting")

    show_parser = subparsers.add_parser("show", help="Print an exported conversations file as text")
    show_parser.add_argument("file", type=Path, help="conversations_{mailbox_id}.json file")
    show_parser.add_argument(
        "--conversation", "-c", type=int, default=None, help="Only show this conversation ID"
    )

    repair_parser = subparsers.add_parser(
        "repair", help="Close the JSON array of an export left unterminated by a crash"
    )
    repair_parser.add_argument("file", type=Path, help="conversations_{mailbox_id}.json file")

    return parser


def _show(path: Path, conversation_id: int | None) -> int:
    """Print the conversations in an exported file; return how many were shown."""
    try:
        conversations = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise HelpScoutExporterError(
            f"{path} is not valid JSON ({e}); run 'repair' if the export was interrupted"
        ) from e

    converter = PlainTextConverter()
    shown = 0
    for conversation in conversations:
        if conversation_id is not None and conversation.get("id") != conversation_id:
            continue
        print(converter.render_conversation(conversation))
        shown += 1
    return shown


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = HelpScoutExporterSettings()
    if getattr(args, "output_dir", None) is not None:
        settings.output_dir = args.output_dir
    setup_logging(settings.log_level)

    exporter = HelpScoutExporter(settings=settings, on_progress=on_progress)

    try:
        if args.command == "export":
            progress = exporter.run()
            if progress.interrupted:
                print(f"\n\nInterrupted, partial export finalized: {progress}")
            else:
                print(f"\n\nComplete: {progress}")

        elif args.command == "list-mailboxes":
            mailboxes = exporter.list_mailboxes()
            print(f"\nFound {len(mailboxes)} mailboxes:\n")
            for mailbox in sorted(mailboxes, key=lambda m: m.name):
                print(f"  {mailbox.id:>10d} {mailbox.name} <{mailbox.email}>")

        elif args.command == "show":
            shown = _show(args.file, args.conversation)
            if shown == 0:
                print("No matching conversations", file=sys.stderr)

        elif args.command == "repair":
            items = repair_unterminated(args.file)
            print(f"{args.file}: {len(items)} conversations")

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        exporter.close()


if __name__ == "__main__":
    main()
