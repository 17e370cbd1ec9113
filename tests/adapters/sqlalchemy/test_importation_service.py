from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session  # noqa: TC002

from contentsync.adapters.kinds import get_kind_spec
from contentsync.adapters.sqlalchemy.entities import ContentEntity, ContentSummaryEntity
from contentsync.adapters.sqlalchemy.importation import SqlAlchemyImportationService
from contentsync.domain.clock import fixed_clock
from contentsync.domain.condition import SingleCondition, SingleOperator, empty_condition
from contentsync.domain.model import AttKey, ContentKind
from tests.helpers.contents import REFERENCE_TIME, make_record


def _service(session: Session, kind: ContentKind = ContentKind.USER) -> SqlAlchemyImportationService:
    return SqlAlchemyImportationService(
        session, get_kind_spec(kind), chunk_size=2, clock=fixed_clock(REFERENCE_TIME)
    )


def test_register_inserts_then_updates(sqlite_session: Session) -> None:
    service = _service(sqlite_session)
    service.initialize_work()
    service.prepare_diff_working_set([make_record("u1", name="Alice")])
    service.register(make_record("u1", name="Alice"))
    sqlite_session.flush()
    sqlite_session.expunge_all()

    service.register(make_record("u1", name="Alicia", attributes={AttKey.ATT05: "x"}))
    sqlite_session.flush()
    sqlite_session.expunge_all()

    stored = sqlite_session.get(ContentEntity, (ContentKind.USER, "u1"))
    assert stored is not None
    assert stored.name == "Alicia"
    assert stored.att05 == "x"
    assert stored.payload == {"note": None}
    assert stored.to_record().digest == make_record(
        "u1", name="Alicia", attributes={AttKey.ATT05: "x"}
    ).digest


def test_classification_compares_digests(sqlite_session: Session) -> None:
    service = _service(sqlite_session)
    service.register(make_record("u1", name="Alice"))
    service.register(make_record("u2", name="Bob"))
    sqlite_session.flush()

    service.initialize_work()
    chunk = [
        make_record("u1", name="Alice"),
        make_record("u2", name="Robert"),
        make_record("u3"),
    ]
    service.prepare_diff_working_set(chunk)

    assert [record.id for record in service.classify_to_register(chunk)] == ["u2", "u3"]
    assert service.classify_explicit_deletions(chunk) == []


def test_explicit_deletions_only_touch_enabled_contents(sqlite_session: Session) -> None:
    service = _service(sqlite_session)
    service.register(make_record("u1"))
    service.register(make_record("u2").as_logical_deletion(REFERENCE_TIME))
    sqlite_session.flush()

    service.initialize_work()
    chunk = [
        make_record("u1", delete_requested=True),
        make_record("u2", delete_requested=True),
        make_record("u3", delete_requested=True),
    ]
    service.prepare_diff_working_set(chunk)

    deletions = service.classify_explicit_deletions(chunk)
    assert [record.id for record in deletions] == ["u1"]
    assert service.classify_to_register(chunk) == []

    deleted = service.logical_delete(deletions[0], REFERENCE_TIME)
    sqlite_session.flush()
    stored = sqlite_session.get(ContentEntity, (ContentKind.USER, "u1"))
    assert stored is not None
    assert not stored.enabled
    assert stored.valid_to == REFERENCE_TIME - timedelta(seconds=1)
    assert stored.digest == deleted.digest


def test_lost_contents_are_counted_and_streamed_by_id(sqlite_session: Session) -> None:
    service = _service(sqlite_session)
    for content_id in ("u1", "u2", "u3", "u4"):
        service.register(make_record(content_id))
    _service(sqlite_session, ContentKind.GROUP).register(
        make_record("g1", kind=ContentKind.GROUP)
    )
    sqlite_session.flush()

    service.initialize_work()
    service.prepare_diff_working_set([make_record("u2")])
    condition = service.build_implicit_deletion_condition(empty_condition())

    assert service.count_matching(condition) == 3
    assert [[record.id for record in chunk] for chunk in service.stream_matching(condition)] == [
        ["u1", "u3"],
        ["u4"],
    ]


def test_extra_condition_narrows_lost_contents(sqlite_session: Session) -> None:
    service = _service(sqlite_session)
    service.register(make_record("u1", attributes={AttKey.ATT01: "tmp"}))
    service.register(make_record("u2", attributes={AttKey.ATT01: "staff"}))
    sqlite_session.flush()
    service.initialize_work()

    condition = service.build_implicit_deletion_condition(
        SingleCondition(SingleOperator.EQUAL, "att01", "tmp")
    )

    assert service.count_matching(condition) == 1


def test_initialize_work_forgets_previous_observations(sqlite_session: Session) -> None:
    service = _service(sqlite_session)
    service.register(make_record("u1"))
    service.initialize_work()
    service.prepare_diff_working_set([make_record("u1")])
    condition = service.build_implicit_deletion_condition(empty_condition())
    assert service.count_matching(condition) == 0

    service.initialize_work()

    assert service.count_matching(condition) == 1


def test_rebuild_scope_selects_drifted_contents(sqlite_session: Session) -> None:
    earlier = REFERENCE_TIME - timedelta(days=10)
    service = _service(sqlite_session)
    service.register(make_record("current"))
    service.register(
        make_record("expired", valid_to=REFERENCE_TIME - timedelta(days=1), reference_time=earlier)
    )
    service.register(
        make_record("started", valid_from=REFERENCE_TIME - timedelta(days=1), reference_time=earlier)
    )
    service.register(make_record("banned", ban=True))
    sqlite_session.flush()

    chunks = list(service.rebuild_scope(REFERENCE_TIME))

    assert [[record.id for record in chunk] for chunk in chunks] == [["expired", "started"]]
    rebuilt = service.rebuild(chunks[0][0], REFERENCE_TIME)
    assert not rebuilt.enabled


def test_summary_counts_enabled_and_disabled(sqlite_session: Session) -> None:
    service = _service(sqlite_session)
    service.register(make_record("u1"))
    service.register(make_record("u2"))
    service.register(make_record("u3", ban=True))
    service.rebuild_persisted_contents()
    sqlite_session.flush()

    summary = sqlite_session.get(ContentSummaryEntity, ContentKind.USER)
    assert summary is not None
    assert (summary.enabled_count, summary.disabled_count) == (2, 1)
    assert summary.rebuilt_at == REFERENCE_TIME


def test_register_rejects_other_kinds(sqlite_session: Session) -> None:
    with pytest.raises(ValueError, match="Cannot register"):
        _service(sqlite_session).register(make_record("g1", kind=ContentKind.GROUP))
