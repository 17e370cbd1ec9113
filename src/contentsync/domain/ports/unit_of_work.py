"""Unit-of-work abstraction coordinating one reconciliation run."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from contentsync.domain.model import ContentKind
    from contentsync.domain.ports.persistence import ImportationService
    from contentsync.domain.ports.recording import JobRecorder


@runtime_checkable
class ImportationUnitOfWork(Protocol):
    """Transaction boundary around one run for a single content kind.

    Writes become visible only on :meth:`commit`; leaving the block with an
    exception rolls everything back.
    """

    kind: ContentKind

    @property
    def importation_service(self) -> ImportationService: ...

    @property
    def recorder(self) -> JobRecorder: ...

    def flush_and_clear(self) -> None: ...

    def __enter__(self) -> ImportationUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
