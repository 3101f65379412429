# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

import uvicorn
from dotenv import load_dotenv

from tyingbench.adapters.snapshot import load_reference
from tyingbench.app import export_catalog_snapshot, run_audit, run_pipeline, start_services
from tyingbench.config import configure_logging
from tyingbench.domain.audit import render_summary
from tyingbench.domain.model import (
    PENDING_REVIEW_STATUSES,
    ExtractedPayload,
    ExtractionStatus,
    SourceType,
)
from tyingbench.domain.pipeline import ConfidenceRange, submit_user_pattern
from tyingbench.domain.ports import ResetFilter
from tyingbench.ui.api import create_app

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from tyingbench.app import PipelineServices

log = logging.getLogger(__name__)

DEFAULT_REVIEWER = "cli"


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fly pattern extraction and ingestion pipeline")
    parser.add_argument("--database-uri", type=str, help="Override DATABASE_URI")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register = subparsers.add_parser("register", help="Register a discovered source URL")
    register.add_argument("url", type=str)
    register.add_argument(
        "--type",
        dest="source_type",
        choices=[member.value for member in SourceType],
        default=SourceType.OTHER.value,
        help="Source type (default: %(default)s)",
    )
    register.add_argument("--query", type=str, help="Search query that found the source")
    register.add_argument("--title", type=str)
    register.add_argument("--creator", type=str)
    register.add_argument("--platform", type=str)

    for name, help_text in (
        ("run", "Scrape discovered sources, then extract scraped ones"),
        ("scrape", "Scrape discovered sources"),
        ("extract", "Send scraped sources to the extraction oracle"),
    ):
        stage = subparsers.add_parser(name, help=help_text)
        stage.add_argument("--limit", type=int, help="Maximum number of sources per stage")

    normalize = subparsers.add_parser("normalize", help="Normalize freshly extracted payloads")
    normalize.add_argument("--limit", type=int)

    listing = subparsers.add_parser("list", help="List extractions in review order")
    listing.add_argument(
        "--status",
        action="append",
        choices=[member.value for member in ExtractionStatus],
        help="Status filter, repeatable (default: pending review)",
    )
    listing.add_argument(
        "--source-type", choices=[member.value for member in SourceType], default=None
    )
    listing.add_argument("--min-confidence", type=float)
    listing.add_argument("--max-confidence", type=float)
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--limit", type=int, default=50)

    approve = subparsers.add_parser("approve", help="Approve and ingest an extraction")
    approve.add_argument("extraction_id", type=str)
    approve.add_argument("--reviewer", type=str, default=DEFAULT_REVIEWER)
    approve.add_argument("--notes", type=str)

    reject = subparsers.add_parser("reject", help="Reject an extraction")
    reject.add_argument("extraction_id", type=str)
    reject.add_argument("--reviewer", type=str, default=DEFAULT_REVIEWER)
    reject.add_argument("--notes", type=str, required=True)

    ingest = subparsers.add_parser("ingest", help="Retry ingestion of an approved extraction")
    ingest.add_argument("extraction_id", type=str)

    reset = subparsers.add_parser("reset", help="Undo ingestions of pipeline-created rows")
    reset.add_argument(
        "--source-type", choices=[member.value for member in SourceType], default=None
    )
    reset.add_argument("--since", type=str, help="ISO-8601 lower bound on ingestion time")
    reset.add_argument("--until", type=str, help="ISO-8601 upper bound on ingestion time")
    reset.add_argument(
        "--id", dest="extraction_ids", action="append", help="Extraction id, repeatable"
    )

    audit = subparsers.add_parser("audit", help="Run a completeness audit")
    audit.add_argument("--snapshot", type=Path, help="Catalog snapshot file (default: live)")
    audit.add_argument("--reference", type=Path, help="Reference pattern list file")
    audit.add_argument("--report-dir", type=Path, help="Directory for the JSON report")

    export = subparsers.add_parser("export-snapshot", help="Write a live catalog snapshot")
    export.add_argument("path", type=Path)
    export.add_argument("--reference", type=Path, help="Reference list to embed")

    subparsers.add_parser("status", help="Print pipeline counts")

    submit = subparsers.add_parser("submit-pattern", help="Add a user-submitted pattern")
    submit.add_argument("file", type=Path, help="JSON payload file")

    serve = subparsers.add_parser("serve", help="Serve the review API")
    serve.add_argument("--host", type=str, default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _reset_filter(args: argparse.Namespace) -> ResetFilter:
    since = _parse_iso_datetime(args.since) if args.since else None
    until = _parse_iso_datetime(args.until) if args.until else None
    if since and until and since > until:
        raise ValueError("--since must be before --until")
    return ResetFilter(
        source_type=SourceType(args.source_type) if args.source_type else None,
        ingested_after=since,
        ingested_before=until,
        extraction_ids=frozenset(_parse_uuid(value) for value in args.extraction_ids or ()),
    )


def _validate(args: argparse.Namespace) -> None:
    if hasattr(args, "extraction_id"):
        args.extraction_id = _parse_uuid(args.extraction_id)
    if args.command == "reset":
        args.reset_filter = _reset_filter(args)
    if getattr(args, "limit", None) is not None and args.limit < 1:
        raise ValueError("--limit must be positive")


def _print_json(value: object) -> None:
    print(json.dumps(value, indent=2, default=str))


def _run_stages(services: PipelineServices, args: argparse.Namespace) -> None:
    results = asyncio.run(
        run_pipeline(
            services,
            limit=args.limit,
            scrape=args.command in {"run", "scrape"},
            extract=args.command in {"run", "extract"},
        )
    )
    for result in results:
        print(result.summary())
        for url, reason in result.errors.items():
            print(f"  {url}: {reason}")


def _list_extractions(services: PipelineServices, args: argparse.Namespace) -> None:
    statuses = (
        frozenset(ExtractionStatus(value) for value in args.status)
        if args.status
        else PENDING_REVIEW_STATUSES
    )
    page = services.review.list_extractions(
        statuses,
        source_type=SourceType(args.source_type) if args.source_type else None,
        confidence_range=ConfidenceRange(args.min_confidence, args.max_confidence),
        page=args.page,
        limit=args.limit,
    )
    print(f"{page.total} extractions ({services.review.order.value} by confidence)")
    for extraction in page.items:
        print(
            f"{extraction.id}  {extraction.confidence:.2f}  {extraction.status.value:<10}  "
            f"{extraction.payload.pattern_name}"
        )


def _dispatch(args: argparse.Namespace) -> None:  # noqa: C901, PLR0912
    command = args.command
    if command == "audit" and args.snapshot is not None:
        report, path = run_audit(
            snapshot_path=args.snapshot, reference_path=args.reference, report_dir=args.report_dir
        )
        print("\n".join(render_summary(report)))
        print(f"Report written to {path}")
        return

    services = start_services(database_uri=args.database_uri)

    if command == "register":
        metadata = {"title": args.title, "creator": args.creator, "platform": args.platform}
        source = services.registry.register(
            args.url, SourceType(args.source_type), args.query, metadata
        )
        print(f"{source.id}  {source.status.value}  {source.url}")
    elif command in {"run", "scrape", "extract"}:
        _run_stages(services, args)
    elif command == "normalize":
        normalized = services.store.normalize_extractions(limit=args.limit)
        print(f"Normalized {len(normalized)} extractions")
    elif command == "list":
        _list_extractions(services, args)
    elif command == "approve":
        result = services.review.approve(args.extraction_id, args.reviewer, args.notes)
        print(f"Approved {result.extraction.id}; ingested into {result.pattern.slug}")
    elif command == "reject":
        extraction = services.review.reject(args.extraction_id, args.reviewer, args.notes)
        print(f"Rejected {extraction.id}")
    elif command == "ingest":
        result = services.review.retry_ingest(args.extraction_id)
        print(f"Ingested {result.extraction.id} into {result.pattern.slug}")
    elif command == "reset":
        reset_result = services.reset.reset_ingested(args.reset_filter)
        _print_json(reset_result.to_dict())
    elif command == "audit":
        report, path = run_audit(
            services, reference_path=args.reference, report_dir=args.report_dir
        )
        print("\n".join(render_summary(report)))
        print(f"Report written to {path}")
    elif command == "export-snapshot":
        reference = load_reference(args.reference) if args.reference else []
        path = export_catalog_snapshot(services, args.path, reference=reference)
        print(f"Snapshot written to {path}")
    elif command == "status":
        for key, value in services.stats().to_dict().items():
            print(f"{key:<28} {value}")
    elif command == "submit-pattern":
        payload = ExtractedPayload.from_dict(json.loads(args.file.read_text(encoding="utf-8")))
        pattern = submit_user_pattern(services.unit_of_work_factory, payload)
        print(f"Created pattern {pattern.slug} ({pattern.id})")
    elif command == "serve":
        uvicorn.run(create_app(services), host=args.host, port=args.port)
    else:
        raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _dispatch(parsed_args)
    except Exception:
        log.exception(f"Fatal error during {parsed_args.command}")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
