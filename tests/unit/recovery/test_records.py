import pytest

from asset_recovery.recovery.config import RecordShape
from asset_recovery.recovery.models import EventKind, ObjectSpan
from asset_recovery.recovery.records import recover_span


@pytest.fixture
def shape() -> RecordShape:
    return RecordShape(discriminating_key="asset_name")


def _recover(text: str, shape: RecordShape, **kwargs):
    return recover_span(text, ObjectSpan(0, len(text)), shape, position=0, **kwargs)


class TestRecoverSpan:
    def test_clean_object(self, shape: RecordShape) -> None:
        recovery = _recover('{"asset_name": "Stage", "tags": ["a"]}', shape)

        assert [r.to_dict() for r in recovery.records] == [
            {"asset_name": "Stage", "tags": ["a"]}
        ]
        assert recovery.events == []
        assert not recovery.unrecoverable

    def test_incomplete_span_is_unrecoverable(self, shape: RecordShape) -> None:
        text = '{"asset_name": "Stage"'

        recovery = recover_span(
            text, ObjectSpan(0, len(text), complete=False), shape, position=4
        )

        assert recovery.records == []
        assert recovery.unrecoverable
        assert [e.kind for e in recovery.events] == [EventKind.UNRECOVERABLE_SPAN]
        assert "record 4" in recovery.events[0].detail

    def test_missing_key_is_malformed_not_unrecoverable(self, shape: RecordShape) -> None:
        recovery = _recover('{"specifications": "orphan"}', shape)

        assert recovery.records == []
        assert not recovery.unrecoverable
        assert [e.kind for e in recovery.events] == [EventKind.MALFORMED_RECORD]

    def test_fused_records_are_split(self, shape: RecordShape) -> None:
        recovery = _recover('{"asset_name": "A", "asset_name": "B"}', shape)

        assert [r["asset_name"] for r in recovery.records] == ["A", "B"]
        assert [e.kind for e in recovery.events] == [EventKind.MERGE_SPLIT]

    def test_three_fused_records_are_flagged_best_effort(self, shape: RecordShape) -> None:
        recovery = _recover(
            '{"asset_name": "A", "asset_name": "B", "asset_name": "C"}', shape
        )

        assert len(recovery.records) == 3
        assert "best effort" in recovery.events[0].detail

    def test_unsplittable_merge_goes_to_duplicate_resolver(self, shape: RecordShape) -> None:
        text = '{"asset_name": "A", "asset_name": "B", "tags": ["x"], "tags": ["y"]}'

        recovery = _recover(text, shape)

        assert [r.to_dict() for r in recovery.records] == [
            {"asset_name": "A", "tags": ["x"]}
        ]
        assert [e.kind for e in recovery.events] == [
            EventKind.MERGE_SPLIT_FALLBACK,
            EventKind.DUPLICATE_KEY_DROPPED,
            EventKind.DUPLICATE_KEY_DROPPED,
        ]

    def test_duplicate_non_discriminating_key_is_resolved(self, shape: RecordShape) -> None:
        recovery = _recover(
            '{"asset_name": "A", "specifications": "x", "specifications": "y"}', shape
        )

        assert recovery.records[0].to_dict() == {"asset_name": "A", "specifications": "x"}
        assert [e.key for e in recovery.events] == ["specifications"]

    def test_undecodable_span_is_unrecoverable(self, shape: RecordShape) -> None:
        recovery = _recover('{"asset_name": "A", "tags": ["x"}', shape)

        assert recovery.unrecoverable
        assert recovery.events[0].kind is EventKind.UNRECOVERABLE_SPAN

    def test_missing_required_field_is_malformed(self) -> None:
        shape = RecordShape(discriminating_key="asset_name", required_fields=("tags",))

        recovery = _recover('{"asset_name": "A"}', shape)

        assert recovery.records == []
        assert "tags" in recovery.events[0].detail

    def test_spans_are_mapped_to_raw(self, shape: RecordShape) -> None:
        def shift(span: ObjectSpan) -> ObjectSpan:
            return ObjectSpan(span.start + 10, span.end + 10, complete=span.complete)

        recovery = _recover('{"asset_name": "A"}', shape, to_raw=shift)

        assert recovery.records[0].span == ObjectSpan(10, 29)
