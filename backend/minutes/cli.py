"""
Command line entry point for the meeting minutes backend.

Usage:
    minutes serve [--host 127.0.0.1] [--port 13001] [--reload]
    minutes rows transcript.txt
    minutes export transcript.txt [--title "Weekly sync"] [--output out.csv]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.config import settings
from .core.export import rows_to_csv, export_filename
from .core.logging import configure_logging
from .core.transcript_codec import parse_transcript

logger = logging.getLogger(__name__)


def read_transcript(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run(
        "minutes.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


def cmd_rows(args) -> int:
    rows = parse_transcript(read_transcript(args.file))
    print(json.dumps([row.to_dict() for row in rows], ensure_ascii=False, indent=2))
    return 0


def cmd_export(args) -> int:
    rows = parse_transcript(read_transcript(args.file))
    title = args.title or Path(args.file).stem
    output = Path(args.output or export_filename(title))

    # CSV rows already end in \r\n
    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(rows_to_csv(rows))

    logger.info(f"✅ Exported {len(rows)} rows to {output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minutes",
        description="Meeting minutes backend and transcript tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.HOST, help=f"Bind address (default: {settings.HOST})")
    serve.add_argument("--port", type=int, default=settings.PORT, help=f"Port (default: {settings.PORT})")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    rows = subparsers.add_parser("rows", help="Print the rows of a transcript file as JSON")
    rows.add_argument("file", help="Transcript text file")
    rows.set_defaults(func=cmd_rows)

    export = subparsers.add_parser("export", help="Write a transcript file as CSV")
    export.add_argument("file", help="Transcript text file")
    export.add_argument("--title", help="Meeting title used for the default file name")
    export.add_argument("--output", "-o", help="Output CSV path")
    export.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        configure_logging(log_level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    else:
        # stdout carries the command output
        configure_logging(log_level=settings.LOG_LEVEL, json_format=False, stream=sys.stderr)

    try:
        return args.func(args)
    except OSError as e:
        logger.error(f"❌ {e}")
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("\n⏹️  Interrupted by user")
        sys.exit(0)
