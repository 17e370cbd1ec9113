"""Source fetchers reading raw key-value records from files and HTTP endpoints."""

from __future__ import annotations

import csv
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast

import httpx

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from pathlib import Path

    from contentsync.domain.ports import RawRecord

log = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


class SourceFormatError(ValueError):
    """Raised when a source yields something other than flat records."""


def _stringify(value: object) -> str:
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case _:
            return str(value)


def _to_raw_record(item: object, *, location: str) -> RawRecord:
    if not isinstance(item, dict):
        raise SourceFormatError(f"Expected a JSON object at {location}, got {type(item).__name__}")
    document = cast("dict[str, Any]", item)
    return {str(key): _stringify(value) for key, value in document.items()}


@dataclass(frozen=True, slots=True)
class CsvSourceFetcher:
    """Read records from a CSV file whose header row names the fields."""

    path: Path
    encoding: str = "utf-8"
    delimiter: str = ","

    @contextmanager
    def fetch(self) -> Iterator[Iterator[RawRecord]]:
        log.info(f"Reading CSV records from {self.path}")
        with self.path.open(newline="", encoding=self.encoding) as handle:
            reader = csv.DictReader(handle, delimiter=self.delimiter, restval="")
            yield (
                {key: value for key, value in row.items() if key is not None}
                for row in reader
            )


@dataclass(frozen=True, slots=True)
class JsonLinesSourceFetcher:
    """Read one JSON object per line; blank lines are skipped."""

    path: Path
    encoding: str = "utf-8"

    @contextmanager
    def fetch(self) -> Iterator[Iterator[RawRecord]]:
        log.info(f"Reading JSON lines records from {self.path}")
        with self.path.open(encoding=self.encoding) as handle:
            yield self._parse(handle)

    def _parse(self, lines: Iterable[str]) -> Iterator[RawRecord]:
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                item = json.loads(line)
            except json.JSONDecodeError as exc:
                raise SourceFormatError(f"Invalid JSON at {self.path}:{number}: {exc}") from exc
            yield _to_raw_record(item, location=f"{self.path}:{number}")


@dataclass(frozen=True, slots=True)
class HttpJsonSourceFetcher:
    """GET a JSON document holding a list of records.

    ``records_key`` selects the list inside a top-level object; without it the
    document itself must be the list.
    """

    url: str
    records_key: str | None = None
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS
    headers: Mapping[str, str] = field(default_factory=dict[str, str])
    transport: httpx.BaseTransport | None = None

    @contextmanager
    def fetch(self) -> Iterator[Iterator[RawRecord]]:
        log.info(f"Fetching records from {self.url}")
        with httpx.Client(
            timeout=self.timeout_seconds,
            headers=dict(self.headers),
            transport=self.transport,
        ) as client:
            response = client.get(self.url)
            response.raise_for_status()
            items = self._extract_items(response.json())
            log.info(f"Received {len(items)} records from {self.url}")
            yield (
                _to_raw_record(item, location=f"{self.url}[{index}]")
                for index, item in enumerate(items)
            )

    def _extract_items(self, document: object) -> list[object]:
        if self.records_key is not None:
            if not isinstance(document, dict) or self.records_key not in document:
                raise SourceFormatError(f"Response from {self.url} has no {self.records_key!r} key")
            document = cast("dict[str, object]", document)[self.records_key]
        if not isinstance(document, list):
            raise SourceFormatError(f"Expected a JSON list of records from {self.url}")
        return cast("list[object]", document)
