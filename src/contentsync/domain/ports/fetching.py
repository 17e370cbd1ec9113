"""Ports for fetching and transforming external source records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from contextlib import AbstractContextManager

    from contentsync.domain.model import TransformResult


type RawRecord = Mapping[str, str]


@runtime_checkable
class SourceFetcher(Protocol):
    """Opens a finite, single-pass stream of raw key-value records.

    The returned context manager releases the underlying source on exit. Fetching
    may raise ``OSError`` (or an HTTP client error), which aborts the run.
    """

    def fetch(self) -> AbstractContextManager[Iterator[RawRecord]]: ...


@runtime_checkable
class Transformer(Protocol):
    """Turns raw records into transform results, one per raw record."""

    def transform(
        self, records: Iterable[RawRecord]
    ) -> AbstractContextManager[Iterator[TransformResult]]: ...
