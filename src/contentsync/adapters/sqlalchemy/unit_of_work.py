"""SQLAlchemy-backed unit of work for reconciliation runs."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from contentsync.adapters.kinds import get_kind_spec
from contentsync.adapters.sqlalchemy.importation import SqlAlchemyImportationService
from contentsync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from contentsync.adapters.sqlalchemy.recording import SqlAlchemyJobRecorder
from contentsync.config import get_database_config
from contentsync.domain.clock import utcnow
from contentsync.domain.importation import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from contentsync.domain.clock import Clock
    from contentsync.domain.model import ContentKind

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call contentsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    start_mappers()
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyImportationUnitOfWork:
    """One session and transaction spanning a whole run for ``kind``.

    Leaving the block without :meth:`commit` discards every write; leaving it with an
    exception rolls back explicitly.
    """

    def __init__(
        self,
        kind: ContentKind,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        job_id: uuid.UUID | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.kind = kind
        self.job_id = job_id or uuid.uuid4()
        self.chunk_size = chunk_size
        self.clock = clock
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None
        self._service: SqlAlchemyImportationService | None = None
        self._recorder: SqlAlchemyJobRecorder | None = None

    def __enter__(self) -> SqlAlchemyImportationUnitOfWork:
        self.session = self.session_factory()
        self._service = SqlAlchemyImportationService(
            self.session,
            get_kind_spec(self.kind),
            chunk_size=self.chunk_size,
            clock=self.clock,
        )
        self._recorder = SqlAlchemyJobRecorder(
            self.session,
            content_kind=self.kind,
            job_id=self.job_id,
            clock=self.clock,
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            log.warning(f"Rolling back {self.kind} job {self.job_id} after {exc_type.__name__}")
            self.rollback()
        self.session.close()
        self.session = None
        self._service = None
        self._recorder = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def flush_and_clear(self) -> None:
        self.session.flush()
        self.session.expunge_all()

    @property
    def importation_service(self) -> SqlAlchemyImportationService:
        if self._service is None:
            raise StartupError("Unit of work session not initialised")
        return self._service

    @property
    def recorder(self) -> SqlAlchemyJobRecorder:
        if self._recorder is None:
            raise StartupError("Unit of work session not initialised")
        return self._recorder

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from contentsync.domain.ports import ImportationUnitOfWork

    _uow_check: ImportationUnitOfWork = SqlAlchemyImportationUnitOfWork(ContentKind.USER)
