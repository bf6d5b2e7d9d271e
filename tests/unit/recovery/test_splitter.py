import pytest

from asset_recovery.recovery.boundaries import locate_records_array
from asset_recovery.recovery.merges import detect_merge
from asset_recovery.recovery.models import ObjectSpan
from asset_recovery.recovery.normalizer import normalize
from asset_recovery.recovery.splitter import reclose_orphan_objects, split_merged


def _split(text: str, span: ObjectSpan | None = None):
    if span is None:
        span = ObjectSpan(0, len(text))
    return split_merged(text, detect_merge(text, span, "asset_name"))


class TestSplitMerged:
    def test_splits_two_fused_records(self) -> None:
        text = (
            '{"asset_name": "Stage", "specifications": "8x4m", '
            '"asset_name": "Lighting", "tags": ["led"]}'
        )

        outcome = _split(text)

        assert outcome.ok
        assert [part.fields for part in outcome.parts] == [
            {"asset_name": "Stage", "specifications": "8x4m"},
            {"asset_name": "Lighting", "tags": ["led"]},
        ]

    def test_part_spans_cover_source_text(self) -> None:
        text = '{"asset_name": "Stage", "asset_name": "Lighting"}'

        parts = _split(text).parts

        assert parts[0].span.slice(text).startswith('{"asset_name": "Stage"')
        assert parts[1].span.slice(text) == '"asset_name": "Lighting"}'
        assert parts[0].span.end == parts[1].span.start

    def test_splits_three_fused_records(self) -> None:
        text = '{"asset_name": "A", "asset_name": "B", "asset_name": "C"}'

        outcome = _split(text)

        assert [part.fields["asset_name"] for part in outcome.parts] == ["A", "B", "C"]

    def test_fields_before_first_key_stay_with_first_record(self) -> None:
        text = '{"tags": ["a"], "asset_name": "A", "asset_name": "B"}'

        parts = _split(text).parts

        assert list(parts[0].fields) == ["tags", "asset_name"]
        assert parts[1].fields == {"asset_name": "B"}

    def test_interleaved_fields_abandon_the_split(self) -> None:
        text = '{"asset_name": "A", "asset_name": "B", "tags": ["x"], "tags": ["y"]}'

        outcome = _split(text)

        assert not outcome.ok
        assert outcome.parts == []
        assert "repeats key(s) tags" in outcome.failure

    def test_incomplete_span_is_not_split(self) -> None:
        text = '{"asset_name": "A", "asset_name": "B"'

        outcome = _split(text, ObjectSpan(0, len(text), complete=False))

        assert outcome.failure == "span is not terminated"

    @pytest.mark.parametrize(
        "text",
        [
            '{"asset_name": "A", "x": [1, "asset_name": "B"}',
            '{"asset_name": "A", "x": , "asset_name": "B"}',
        ],
    )
    def test_part_that_does_not_stand_alone_fails(self, text: str) -> None:
        assert not _split(text).ok


def _reclose(raw: str):
    normalized = normalize(raw)
    return reclose_orphan_objects(normalized, locate_records_array(normalized.text))


class TestRecloseOrphanObjects:
    def test_closes_record_ahead_of_separating_comma(self) -> None:
        raw = '[{"asset_name": "A", "tags": ["x"],\n {"asset_name": "B"}]'

        reclosure = _reclose(raw)

        assert reclosure.normalized.text == (
            '[{"asset_name": "A", "tags": ["x"]},\n {"asset_name": "B"}]]'
        )
        assert reclosure.closers == {raw.index(",\n")}

    def test_adds_comma_when_none_separates_the_records(self) -> None:
        raw = '[{"asset_name": "A" {"asset_name": "B"}]'

        reclosure = _reclose(raw)

        assert reclosure.normalized.text.startswith(
            '[{"asset_name": "A"}, {"asset_name": "B"}]'
        )

    def test_reclosed_span_maps_to_real_text_only(self) -> None:
        raw = '[{"asset_name": "A", "tags": ["x"],\n {"asset_name": "B"}]'
        closer = raw.index(",\n")

        reclosure = _reclose(raw)
        span = reclosure.normalized.to_raw_span(ObjectSpan(1, closer + 1))

        assert span.slice(raw) == '{"asset_name": "A", "tags": ["x"]'

    @pytest.mark.parametrize(
        "raw",
        [
            '[{"asset_name": "A", "meta": {"x": 1}}]',
            '[{"asset_name": "A", "tags": [{"x": 1}]}]',
            '[{"asset_name": "A", "notes": "see {\\"asset_name\\": 1}"}]',
        ],
    )
    def test_legal_nested_objects_are_left_alone(self, raw: str) -> None:
        reclosure = _reclose(raw)

        assert not reclosure.changed
        assert reclosure.normalized.text == raw
