from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003

import httpx
import pytest

from contentsync.adapters.sources import (
    CsvSourceFetcher,
    HttpJsonSourceFetcher,
    JsonLinesSourceFetcher,
    SourceFormatError,
)


def test_csv_rows_become_raw_records(tmp_path: Path) -> None:
    path = tmp_path / "users.csv"
    path.write_text("id,name,att01\nu1,Alice,staff\nu2,Bob\n", encoding="utf-8")

    with CsvSourceFetcher(path).fetch() as records:
        rows = list(records)

    assert rows == [
        {"id": "u1", "name": "Alice", "att01": "staff"},
        {"id": "u2", "name": "Bob", "att01": ""},
    ]


def test_json_lines_values_are_stringified(tmp_path: Path) -> None:
    path = tmp_path / "users.jsonl"
    path.write_text(
        json.dumps({"id": "u1", "ban": True, "att01": None, "att02": 7}) + "\n\n", encoding="utf-8"
    )

    with JsonLinesSourceFetcher(path).fetch() as records:
        rows = list(records)

    assert rows == [{"id": "u1", "ban": "true", "att01": "", "att02": "7"}]


def test_json_lines_rejects_non_objects(tmp_path: Path) -> None:
    path = tmp_path / "users.jsonl"
    path.write_text('["u1"]\n', encoding="utf-8")

    with JsonLinesSourceFetcher(path).fetch() as records, pytest.raises(SourceFormatError):
        list(records)


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError), CsvSourceFetcher(tmp_path / "missing.csv").fetch():
        pass


def test_http_source_reads_records_key() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"users": [{"id": "u1", "name": "Alice"}]})

    fetcher = HttpJsonSourceFetcher(
        "https://example.test/users",
        records_key="users",
        headers={"Authorization": "Bearer token"},
        transport=httpx.MockTransport(handler),
    )

    with fetcher.fetch() as records:
        rows = list(records)

    assert rows == [{"id": "u1", "name": "Alice"}]
    assert requests[0].headers["Authorization"] == "Bearer token"


def test_http_source_raises_on_error_status() -> None:
    fetcher = HttpJsonSourceFetcher(
        "https://example.test/users",
        transport=httpx.MockTransport(lambda _request: httpx.Response(503)),
    )

    with pytest.raises(httpx.HTTPStatusError), fetcher.fetch():
        pass


def test_http_source_requires_a_list() -> None:
    fetcher = HttpJsonSourceFetcher(
        "https://example.test/users",
        transport=httpx.MockTransport(lambda _request: httpx.Response(200, json={"id": "u1"})),
    )

    with pytest.raises(SourceFormatError), fetcher.fetch():
        pass
