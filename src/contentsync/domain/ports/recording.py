"""Port for the job recording side channel."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contentsync.domain.model import JobRecord


@runtime_checkable
class JobRecorder(Protocol):
    """Append-only sink for job events, ordered within one run."""

    def record(self, record: JobRecord) -> None: ...

    def record_message(self, message: str) -> None: ...
