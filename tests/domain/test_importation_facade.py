from __future__ import annotations

from datetime import timedelta

import pytest

from contentsync.adapters.transform import PassThroughTransformer, TemplateTransformer
from contentsync.domain.clock import fixed_clock
from contentsync.domain.condition import SingleCondition, SingleOperator
from contentsync.domain.importation import ImportationFacade, ImportContext
from contentsync.domain.model import JobPhase, RecordKind
from tests.helpers.contents import (
    REFERENCE_TIME,
    CountingPersistence,
    InMemoryImportationService,
    InMemoryJobRecorder,
    ListSourceFetcher,
    make_record,
)


def _facade(
    service: InMemoryImportationService,
    recorder: InMemoryJobRecorder,
    persistence: CountingPersistence | None = None,
) -> ImportationFacade:
    return ImportationFacade(
        service=service,
        recorder=recorder,
        persistence=persistence or CountingPersistence(),
        clock=fixed_clock(REFERENCE_TIME),
        chunk_size=2,
    )


def _context(records: list[dict[str, str]], **kwargs: object) -> ImportContext:
    return ImportContext(
        fetcher=ListSourceFetcher(records),
        transformer=PassThroughTransformer(),
        **kwargs,  # type: ignore[arg-type]
    )


def test_new_records_are_registered() -> None:
    service = InMemoryImportationService()
    recorder = InMemoryJobRecorder()

    result = _facade(service, recorder).import_contents(
        _context([{"id": "u1", "name": "Alice"}, {"id": "u2", "name": "Bob"}])
    )

    assert result.registered == 2
    assert sorted(service.store) == ["u1", "u2"]
    assert [record.content_id for record in recorder.of_kind(RecordKind.REGISTER)] == ["u1", "u2"]
    assert service.store["u1"].enabled
    assert service.summaries_rebuilt == 1


def test_duplicate_ids_keep_last_record_and_record_one_failure() -> None:
    service = InMemoryImportationService()
    recorder = InMemoryJobRecorder()

    result = _facade(service, recorder).import_contents(
        _context(
            [
                {"id": "u1", "name": "first", "raw_login": "U1-first"},
                {"id": "u2", "name": "Bob"},
                {"id": "u1", "name": "second", "raw_login": "U1-second"},
            ]
        )
    )

    duplicates = recorder.failures(JobPhase.VALIDATION)
    assert len(duplicates) == 1
    assert duplicates[0].content_id == "u1"
    assert duplicates[0].message == "Duplicate id."
    assert duplicates[0].content["name"] == "first"
    assert duplicates[0].content["source"] == {"id": "u1", "name": "first", "raw_login": "U1-first"}
    assert recorder.messages == ["Duplicate content detected."]
    assert result.duplicates == 1
    assert service.store["u1"].name == "second"
    assert sorted(service.store) == ["u1", "u2"]


def test_failures_are_recorded_and_excluded() -> None:
    service = InMemoryImportationService()
    recorder = InMemoryJobRecorder()
    context = ImportContext(
        fetcher=ListSourceFetcher(
            [
                {"login": "u1", "display": "Alice"},
                {"display": "no login"},
                {"login": "  ", "display": "blank login"},
            ]
        ),
        transformer=TemplateTransformer({"id": "${login}", "name": "${display}"}),
    )

    result = _facade(service, recorder).import_contents(context)

    assert result.transformation_failures == 1
    assert result.validation_failures == 1
    transformation = recorder.failures(JobPhase.TRANSFORMATION)
    assert transformation[0].message == "Missing source field: login"
    validation = recorder.failures(JobPhase.VALIDATION)
    assert validation[0].message is not None
    assert validation[0].message.startswith("id: ")
    assert list(service.store) == ["u1"]


def test_second_run_over_unchanged_source_writes_nothing() -> None:
    service = InMemoryImportationService()
    records = [{"id": "u1", "name": "Alice"}, {"id": "u2", "name": "Bob"}]
    _facade(service, InMemoryJobRecorder()).import_contents(_context(records))

    recorder = InMemoryJobRecorder()
    result = _facade(service, recorder).import_contents(
        _context(records, allow_implicit_deletion=True)
    )

    assert result.registered == 0
    assert result.deleted == 0
    assert result.rebuilt == 0
    assert recorder.records == []


def test_changed_record_is_registered_again() -> None:
    service = InMemoryImportationService(store={"u1": make_record("u1", name="Alice")})
    recorder = InMemoryJobRecorder()

    _facade(service, recorder).import_contents(_context([{"id": "u1", "name": "Alicia"}]))

    assert [record.content_id for record in recorder.of_kind(RecordKind.REGISTER)] == ["u1"]
    assert service.store["u1"].name == "Alicia"


def test_explicit_deletion_disables_persisted_content() -> None:
    service = InMemoryImportationService(store={"u1": make_record("u1", name="Alice")})
    recorder = InMemoryJobRecorder()

    result = _facade(service, recorder).import_contents(
        _context([{"id": "u1", "name": "Alice", "doDelete": "true"}])
    )

    assert result.explicitly_deleted == 1
    deleted = service.store["u1"]
    assert not deleted.enabled
    assert deleted.validity_period.valid_to == REFERENCE_TIME - timedelta(seconds=1)
    assert [record.content_id for record in recorder.of_kind(RecordKind.DELETION)] == ["u1"]
    assert recorder.of_kind(RecordKind.REGISTER) == []

    rerun = InMemoryJobRecorder()
    _facade(service, rerun).import_contents(
        _context([{"id": "u1", "name": "Alice", "doDelete": "true"}])
    )
    assert rerun.records == []


def test_explicit_deletion_of_unknown_content_is_ignored() -> None:
    service = InMemoryImportationService()
    recorder = InMemoryJobRecorder()

    _facade(service, recorder).import_contents(_context([{"id": "u1", "doDelete": "true"}]))

    assert service.store == {}
    assert recorder.records == []


def test_lost_contents_are_deleted_only_when_allowed() -> None:
    store = {key: make_record(key) for key in ("u1", "u2", "u9")}
    source = [{"id": "u1"}, {"id": "u2"}]

    kept = InMemoryImportationService(store=dict(store))
    _facade(kept, InMemoryJobRecorder()).import_contents(_context(source))
    assert kept.store["u9"].enabled

    service = InMemoryImportationService(store=dict(store))
    recorder = InMemoryJobRecorder()
    result = _facade(service, recorder).import_contents(
        _context(source, allow_implicit_deletion=True)
    )

    assert result.implicitly_deleted == 1
    assert not service.store["u9"].enabled
    assert [record.content_id for record in recorder.of_kind(RecordKind.DELETION)] == ["u9"]


def test_extra_deletion_condition_is_forwarded() -> None:
    service = InMemoryImportationService()
    extra = SingleCondition(SingleOperator.FORWARD_MATCH, "id", "tmp-")

    _facade(service, InMemoryJobRecorder()).import_contents(
        _context([], allow_implicit_deletion=True, implicit_deletion_condition=extra)
    )

    assert service.conditions == [extra]


@pytest.mark.parametrize(("limit", "deleted"), [(3, 3), (None, 3), (2, 0)])
def test_deletion_limit_boundary(limit: int | None, deleted: int) -> None:
    store = {key: make_record(key) for key in ("u1", "u7", "u8", "u9")}
    service = InMemoryImportationService(store=store)
    recorder = InMemoryJobRecorder()

    result = _facade(service, recorder).import_contents(
        _context([{"id": "u1"}], allow_implicit_deletion=True, deletion_limit=limit)
    )

    assert result.implicitly_deleted == deleted
    assert len(recorder.of_kind(RecordKind.DELETION)) == deleted
    assert result.deletion_limit_exceeded is (deleted == 0)


def test_exceeded_deletion_limit_records_every_candidate() -> None:
    store = {key: make_record(key) for key in ("u7", "u8", "u9")}
    service = InMemoryImportationService(store=store)
    recorder = InMemoryJobRecorder()

    result = _facade(service, recorder).import_contents(
        _context([], allow_implicit_deletion=True, deletion_limit=2)
    )

    assert recorder.messages == ["Deletion limit count exceeded: 3/2"]
    skipped = recorder.failures(JobPhase.PROVISIONING)
    assert [record.content_id for record in skipped] == ["u7", "u8", "u9"]
    assert {record.message for record in skipped} == {"Ignored because the limit was exceeded."}
    assert result.deletion_skipped == 3
    assert all(record.enabled for record in service.store.values())


def test_rebuild_follows_validity_periods() -> None:
    earlier = REFERENCE_TIME - timedelta(days=10)
    expired = make_record(
        "expired", valid_to=REFERENCE_TIME - timedelta(days=1), reference_time=earlier
    )
    started = make_record(
        "started", valid_from=REFERENCE_TIME - timedelta(days=1), reference_time=earlier
    )
    assert expired.enabled
    assert not started.enabled
    service = InMemoryImportationService(store={"expired": expired, "started": started})
    recorder = InMemoryJobRecorder()

    result = _facade(service, recorder).rebuild_contents()

    assert result.rebuilt == 2
    assert [record.content_id for record in recorder.of_kind(RecordKind.DELETION)] == ["expired"]
    assert [record.content_id for record in recorder.of_kind(RecordKind.REGISTER)] == ["started"]
    assert not service.store["expired"].enabled
    assert service.store["started"].enabled
    assert service.store["started"].digest == started.digest


def test_registrations_are_chunked_and_flushed() -> None:
    service = InMemoryImportationService()
    persistence = CountingPersistence()
    records = [{"id": f"u{index}"} for index in range(5)]

    _facade(service, InMemoryJobRecorder(), persistence).import_contents(_context(records))

    assert service.prepared_chunks == [["u0", "u1"], ["u2", "u3"], ["u4"]]
    # initialize, three chunks, summary refresh
    assert persistence.flushes == 5


def test_source_errors_abort_and_release_the_source() -> None:
    service = InMemoryImportationService()
    fetcher = ListSourceFetcher([{"id": "u1"}, {"id": "u2"}], fail_after=1)
    context = ImportContext(fetcher=fetcher, transformer=PassThroughTransformer())

    with pytest.raises(OSError, match="source connection lost"):
        _facade(service, InMemoryJobRecorder()).import_contents(context)

    assert fetcher.closed == 1
    assert service.store == {}


def test_negative_deletion_limit_is_rejected() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        _context([], deletion_limit=-1)
