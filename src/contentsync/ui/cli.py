from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from contentsync.adapters.condition_schema import load_condition
from contentsync.adapters.sources import (
    CsvSourceFetcher,
    HttpJsonSourceFetcher,
    JsonLinesSourceFetcher,
)
from contentsync.adapters.transform import PassThroughTransformer, TemplateTransformer
from contentsync.app import import_contents, rebuild_contents
from contentsync.config import ConfigurationError, configure_logging, get_importation_config
from contentsync.domain.condition import empty_condition
from contentsync.domain.importation import ImportContext
from contentsync.domain.model import ContentKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from contentsync.domain.ports import SourceFetcher, Transformer

log = logging.getLogger(__name__)

SOURCE_FORMATS = ("csv", "jsonl", "http")


def _parse_kind(value: str) -> ContentKind:
    try:
        return ContentKind(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(kind.value for kind in ContentKind)
        raise argparse.ArgumentTypeError(
            f"Unknown content kind: {value} (choose from {choices})"
        ) from exc


def _non_negative_int(value: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"Expected a non-negative integer, got {value}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile identity content feeds")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import", help="Import contents of one kind")
    importer.add_argument("kind", type=_parse_kind, help="Content kind to import")
    importer.add_argument(
        "--source",
        type=str,
        required=True,
        help="Path of a CSV or JSON lines file, or URL of a JSON endpoint",
    )
    importer.add_argument(
        "--format",
        choices=SOURCE_FORMATS,
        help="Source format (default: inferred from the source)",
    )
    importer.add_argument(
        "--records-key",
        type=str,
        help="Key holding the record list in an HTTP JSON response",
    )
    importer.add_argument(
        "--mapping",
        type=Path,
        help="JSON file mapping content fields to ${field} templates over source records",
    )
    importer.add_argument(
        "--allow-implicit-deletion",
        action="store_true",
        help="Disable stored contents missing from the source",
    )
    importer.add_argument(
        "--deletion-limit",
        type=_non_negative_int,
        help="Skip implicit deletion when more contents would be deleted (defaults to config)",
    )
    importer.add_argument(
        "--condition",
        type=Path,
        help="JSON file with an extra condition restricting implicit deletion",
    )

    rebuild = subparsers.add_parser("rebuild", help="Re-evaluate enabled flags of stored contents")
    rebuild.add_argument("kind", type=_parse_kind, help="Content kind to rebuild")
    rebuild.add_argument(
        "--at",
        type=str,
        help="ISO-8601 reference time (UTC when no offset is given; default: now)",
    )

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


def _infer_format(source: str) -> str:
    if source.startswith(("http://", "https://")):
        return "http"
    suffix = Path(source).suffix.lower()
    if suffix == ".csv":
        return "csv"
    if suffix in {".jsonl", ".ndjson"}:
        return "jsonl"
    raise ValueError(f"Cannot infer the format of {source}; pass --format")


def _build_fetcher(args: argparse.Namespace) -> SourceFetcher:
    source_format = args.format or _infer_format(args.source)
    match source_format:
        case "csv":
            return CsvSourceFetcher(Path(args.source))
        case "jsonl":
            return JsonLinesSourceFetcher(Path(args.source))
        case "http":
            return HttpJsonSourceFetcher(args.source, records_key=args.records_key)
        case _:
            raise ValueError(f"Unsupported source format: {source_format}")


def _build_context(args: argparse.Namespace) -> ImportContext:
    transformer: Transformer = (
        TemplateTransformer.from_file(args.mapping) if args.mapping else PassThroughTransformer()
    )
    deletion_limit = args.deletion_limit
    if deletion_limit is None:
        deletion_limit = get_importation_config().deletion_limit
    return ImportContext(
        fetcher=_build_fetcher(args),
        transformer=transformer,
        allow_implicit_deletion=args.allow_implicit_deletion,
        implicit_deletion_condition=(
            load_condition(args.condition) if args.condition else empty_condition()
        ),
        deletion_limit=deletion_limit,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    reference_time: datetime | None = None
    context: ImportContext | None = None
    try:
        if parsed_args.command == "import":
            context = _build_context(parsed_args)
        elif parsed_args.at:
            reference_time = _parse_iso_datetime(parsed_args.at)
    except (ValueError, OSError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if context is not None:
            result = import_contents(parsed_args.kind, context)
            if result.deletion_limit_exceeded:
                log.warning(
                    f"Implicit deletion skipped for {result.deletion_skipped} contents; "
                    "the deletion limit was exceeded"
                )
        else:
            rebuild_contents(parsed_args.kind, reference_time=reference_time)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Abort the run on Ctrl+C; the open unit of work rolls back."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(130)
