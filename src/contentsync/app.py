"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from contentsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportationUnitOfWork,
    is_started,
    startup,
)
from contentsync.config import get_importation_config
from contentsync.domain.clock import utcnow
from contentsync.domain.errors import PublishableError, UnresolvedFieldError
from contentsync.domain.importation import ImportationFacade

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from contentsync.domain.clock import Clock
    from contentsync.domain.importation import ImportContext, ReconciliationResult
    from contentsync.domain.model import ContentKind
    from contentsync.domain.ports import ImportationUnitOfWork

type UnitOfWorkFactory = Callable[[ContentKind], ImportationUnitOfWork]


log = getLogger(__name__)


def _default_unit_of_work_factory(chunk_size: int, clock: Clock) -> UnitOfWorkFactory:
    if not is_started():
        startup()

    def factory(kind: ContentKind) -> ImportationUnitOfWork:
        return SqlAlchemyImportationUnitOfWork(kind, chunk_size=chunk_size, clock=clock)

    return factory


def _build_facade(
    unit_of_work: ImportationUnitOfWork, *, chunk_size: int, clock: Clock
) -> ImportationFacade:
    return ImportationFacade(
        service=unit_of_work.importation_service,
        recorder=unit_of_work.recorder,
        persistence=unit_of_work,
        clock=clock,
        chunk_size=chunk_size,
    )


def import_contents(
    kind: ContentKind,
    context: ImportContext,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    chunk_size: int | None = None,
    clock: Clock = utcnow,
) -> ReconciliationResult:
    """Reconcile the contents provided by ``context`` and commit the run as a whole.

    Unknown field names in the implicit-deletion condition are configuration
    mistakes; they surface as :class:`PublishableError` after the run rolled back.
    """

    effective_chunk_size = (
        get_importation_config().chunk_size if chunk_size is None else chunk_size
    )
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory(
        effective_chunk_size, clock
    )
    log.info(
        f"Starting {kind} import: implicit_deletion={context.allow_implicit_deletion}, "
        f"deletion_limit={context.deletion_limit}, chunk_size={effective_chunk_size}"
    )

    with effective_uow(kind) as uow:
        facade = _build_facade(uow, chunk_size=effective_chunk_size, clock=clock)
        try:
            result = facade.import_contents(context)
        except UnresolvedFieldError as exc:
            log.exception("Implicit deletion condition refers to an unknown field")
            raise PublishableError(exc) from exc
        uow.commit()

    log.info(
        f"Finished {kind} import: registered={result.registered}, deleted={result.deleted}, "
        f"skipped={result.deletion_skipped}, rebuilt={result.rebuilt}, "
        f"failures={result.transformation_failures + result.validation_failures}, "
        f"duplicates={result.duplicates}"
    )
    return result


def rebuild_contents(
    kind: ContentKind,
    *,
    reference_time: datetime | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    chunk_size: int | None = None,
    clock: Clock = utcnow,
) -> ReconciliationResult:
    """Re-evaluate enabled flags of stored ``kind`` contents at ``reference_time``."""

    effective_chunk_size = (
        get_importation_config().chunk_size if chunk_size is None else chunk_size
    )
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory(
        effective_chunk_size, clock
    )

    with effective_uow(kind) as uow:
        facade = _build_facade(uow, chunk_size=effective_chunk_size, clock=clock)
        result = facade.rebuild_contents(reference_time)
        uow.commit()

    log.info(f"Finished {kind} rebuild: rebuilt={result.rebuilt}")
    return result
