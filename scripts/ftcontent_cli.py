"""Command line entry point for fileicon extraction, preview generation and metadata parsing."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

# Ensure project root is on sys.path when running as a script
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ftcontent.config import Settings
from ftcontent.content_store import LocalContentStore
from ftcontent.errors import ContentAbsent, FileTransferContentError
from ftcontent.fileicon import create_fileicon, extract_fileicon
from ftcontent.multipart import boundary_from_content_type
from ftcontent.transfer_info import parse_transfer_metadata
from ftcontent.utils import isoformat_utc

load_dotenv()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="File-transfer content tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Persist the preview embedded in a multipart body")
    extract.add_argument("body", type=Path, help="File holding the raw multipart body")
    group = extract.add_mutually_exclusive_group(required=True)
    group.add_argument("--boundary", help="Boundary token separating the parts")
    group.add_argument("--content-type", help="Content-Type header carrying the boundary")
    extract.add_argument("--key", required=True, help="Correlation key (message or session id)")
    extract.add_argument(
        "--types",
        help="Semicolon separated MIME types in priority order (defaults to settings)",
    )

    preview = sub.add_parser("preview", help="Generate and persist a size-bounded JPEG preview")
    preview.add_argument("image", type=Path, help="Source image file")
    preview.add_argument("--key", required=True, help="Correlation key (message or session id)")

    info = sub.add_parser("parse-info", help="Parse a file-transfer metadata document")
    info.add_argument("document", type=Path, help="XML document to parse")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def run_extract(args: argparse.Namespace, settings: Settings) -> int:
    boundary = args.boundary or boundary_from_content_type(args.content_type)
    candidate_types = (
        [item.strip() for item in args.types.split(";") if item.strip()]
        if args.types
        else settings.preview_candidate_types
    )
    store = LocalContentStore(settings.content_dir, settings.content_index_db)
    try:
        descriptor = extract_fileicon(
            args.body.read_bytes(),
            boundary,
            args.key,
            store,
            candidate_types=candidate_types,
            prefix=settings.fileicon_prefix,
        )
    except ContentAbsent as exc:
        logging.info("No embedded preview: %s", exc)
        return 0
    logging.info("Stored %s (%s bytes)", descriptor.identifier, descriptor.size)
    print(store.path_for(descriptor.identifier))
    return 0


def run_preview(args: argparse.Namespace, settings: Settings) -> int:
    store = LocalContentStore(settings.content_dir, settings.content_index_db)
    descriptor = create_fileicon(args.image, args.key, store, settings)
    logging.info("Stored %s (%s bytes)", descriptor.identifier, descriptor.size)
    print(store.path_for(descriptor.identifier))
    return 0


def run_parse_info(args: argparse.Namespace, settings: Settings) -> int:
    doc = parse_transfer_metadata(args.document.read_bytes())
    summary = {
        "url": doc.url,
        "size": doc.size,
        "type": doc.mime_type,
        "until": isoformat_utc(doc.until) if doc.until else None,
        "name": doc.file_name,
        "thumbnail": (
            {"url": doc.preview.url, "type": doc.preview.mime_type, "size": doc.preview.size}
            if doc.preview
            else None
        ),
    }
    print(json.dumps(summary, indent=2))
    return 0


COMMANDS = {
    "extract": run_extract,
    "preview": run_preview,
    "parse-info": run_parse_info,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level)

    try:
        return COMMANDS[args.command](args, settings)
    except FileTransferContentError as exc:
        logging.error("%s failed: %s: %s", args.command, type(exc).__name__, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
