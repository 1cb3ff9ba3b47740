"""
Book Scanner CLI

Run a cover scan or the AI heartbeat from the command line.

Setup:
    Copy .env.example to .env and fill in OCR_FUNCTION_URL and GEMINI_API_KEY.

Usage:
    book-scanner scan /path/to/cover.jpg
    book-scanner scan /path/to/cover.heic --json
    book-scanner scan /path/to/cover.png --no-probe --debug
    book-scanner heartbeat
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env before the settings module is imported
load_dotenv(Path.cwd() / ".env")

from book_scanner.config import ScannerConfig, get_settings, setup_logging  # noqa: E402
from book_scanner.enums import ScanStage  # noqa: E402
from book_scanner.exceptions import ConfigurationError  # noqa: E402
from book_scanner.models.scan import ScanResponse  # noqa: E402
from book_scanner.pipelines import ScanSession, create_pipeline  # noqa: E402
from book_scanner.services.llm import LLMClient  # noqa: E402


def print_stage(session: ScanSession, previous: ScanStage, current: ScanStage) -> None:
    """Progress observer for interactive runs."""
    print(f"  [{current.value}]", file=sys.stderr)


def print_result(session: ScanSession, output_format: str = "summary") -> None:
    """Print a finished session as a summary or as JSON."""
    if output_format == "json":
        data = ScanResponse.from_session(session).model_dump(mode="json")
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return

    if session.error:
        print(f"Scan failed: {session.error.message}")
        return

    record = session.record
    print("OCR lines:")
    for line in session.ocr_lines:
        print(f"  {line}")
    if session.liveness:
        print(f"AI status: {session.liveness}")
    print()
    print(f"Title:       {record.title}")
    if record.authors:
        print(f"Authors:     {', '.join(record.authors)}")
    print(f"Publisher:   {record.publisher or 'Unknown'}")
    print(f"Year:        {record.year or 'N/A'}")
    if record.cover_uri:
        print(f"Cover:       {record.cover_uri}")
    if record.search_url:
        print(f"Search:      {record.search_url}")
    if record.description:
        print()
        print(record.description)


async def run_scan(args: argparse.Namespace, config: ScannerConfig) -> int:
    """Scan one image file."""
    image_path = Path(args.image).expanduser().resolve()
    if not image_path.is_file():
        print(f"Error: image not found: {image_path}", file=sys.stderr)
        return 1

    settings = get_settings()
    pipeline = create_pipeline(
        config,
        settings,
        observer=None if args.json else print_stage,
    )
    if args.no_probe:
        pipeline.probe_liveness = False

    try:
        session = await pipeline.scan(image_path, source_name=image_path.name)
    finally:
        await pipeline.close()

    print_result(session, "json" if args.json else "summary")
    return 1 if session.failed else 0


async def run_heartbeat(config: ScannerConfig) -> int:
    """Probe the inference endpoint."""
    reply = await LLMClient(config).heartbeat()
    print(reply)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Identify Hebrew books from a photo of the cover."
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging")

    # Accepted after the subcommand too; SUPPRESS leaves the top-level value alone
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--debug", action="store_true", default=argparse.SUPPRESS, help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", parents=[common], help="Scan a cover image")
    scan_parser.add_argument("image", help="Path to the cover photo")
    scan_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    scan_parser.add_argument(
        "--no-probe", action="store_true", help="Skip the AI heartbeat before inference"
    )

    subparsers.add_parser(
        "heartbeat", parents=[common], help="Check that the inference endpoint answers"
    )

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(debug=args.debug or settings.DEBUG, level=settings.LOG_LEVEL)

    try:
        config = ScannerConfig.from_settings(settings)
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 2

    if args.command == "scan":
        return asyncio.run(run_scan(args, config))
    return asyncio.run(run_heartbeat(config))


if __name__ == "__main__":
    sys.exit(main())
