import json
from unittest.mock import AsyncMock

import pytest

from asset_recovery.assets.models import AssetRecord
from asset_recovery.assets.service import AssetExtractor
from asset_recovery.observability import names
from asset_recovery.recovery.models import EventKind, RecoveryEvent, Strategy


class ListSink:
    def __init__(self) -> None:
        self.calls: list[tuple[list[AssetRecord], list[RecoveryEvent]]] = []

    def save(self, records, events) -> None:
        self.calls.append((records, events))


class FailingSink:
    def save(self, records, events) -> None:
        raise RuntimeError("database unavailable")


class RecordingMetricsHook:
    def __init__(self) -> None:
        self.increments: dict[str, int] = {}
        self.latencies: list[str] = []

    def record_latency(self, name, value_ms, labels=None) -> None:
        self.latencies.append(name)

    def increment(self, name, value=1, labels=None) -> None:
        self.increments[name] = self.increments.get(name, 0) + value

    def record_gauge(self, name, value, labels=None) -> None:
        pass


RESPONSE = json.dumps(
    {
        "assets": [
            {"asset_name": "Stage", "specifications": "8x4m riser", "priority": "high"},
            {"asset_name": "Lighting", "tags": ["led"], "quantity": 12},
        ],
        "reasoning": "The brief describes an evening launch",
        "confidence": 0.9,
    }
)


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.mark.asyncio
async def test_saves_recovered_assets(sink: ListSink) -> None:
    report = await AssetExtractor(sink).ingest(RESPONSE)

    assert report.parse_result.strategy is Strategy.STRICT
    assert [a.asset_name for a in report.saved] == ["Stage", "Lighting"]
    assert report.saved[1].quantity == 12
    assert sink.calls == [(report.saved, [])]


@pytest.mark.asyncio
async def test_async_sink_is_awaited() -> None:
    sink = AsyncMock()

    report = await AssetExtractor(sink).ingest(RESPONSE)

    sink.save.assert_awaited_once_with(report.saved, [])


@pytest.mark.asyncio
async def test_events_travel_with_the_records(sink: ListSink) -> None:
    fused = (
        '{"assets": [{"asset_name": "Stage", "specifications": "8x4m riser", '
        '"asset_name": "Lighting", "specifications": "LED wash"}]}'
    )

    report = await AssetExtractor(sink).ingest(fused)

    records, events = sink.calls[0]
    assert [a.asset_name for a in records] == ["Stage", "Lighting"]
    assert [e.kind for e in events] == [EventKind.MERGE_SPLIT]
    assert report.parse_result.strategy is Strategy.SPLIT


@pytest.mark.asyncio
async def test_invalid_record_is_rejected_alone(sink: ListSink) -> None:
    raw = '[{"asset_name": "Stage"}, {"asset_name": "Sound", "priority": "urgent"}]'

    report = await AssetExtractor(sink).ingest(raw)

    assert [a.asset_name for a in report.saved] == ["Stage"]
    assert len(report.rejected) == 1
    assert report.rejected[0].position == 1
    assert report.rejected[0].fields["asset_name"] == "Sound"
    assert "priority" in report.rejected[0].error


@pytest.mark.asyncio
async def test_brief_fallback_when_nothing_recovered(sink: ListSink) -> None:
    report = await AssetExtractor(sink).ingest(
        "I'm sorry, I can't help with that.", brief="Stage and catering for the gala"
    )

    assert report.used_brief_fallback
    assert [a.asset_name for a in report.saved] == ["Staging", "Catering"]
    records, events = sink.calls[0]
    assert records == report.saved
    assert [e.kind for e in events] == [EventKind.EMPTY_RESULT]


@pytest.mark.asyncio
async def test_nothing_saved_without_brief(sink: ListSink) -> None:
    report = await AssetExtractor(sink).ingest("")

    assert report.saved == []
    assert not report.used_brief_fallback
    assert sink.calls == []
    assert report.parse_result.events[0].kind is EventKind.EMPTY_RESULT


@pytest.mark.asyncio
async def test_rejections_suppress_brief_fallback(sink: ListSink) -> None:
    raw = '[{"asset_name": "Sound", "priority": "urgent"}]'

    report = await AssetExtractor(sink).ingest(raw, brief="stage")

    assert not report.used_brief_fallback
    assert report.saved == []
    assert sink.calls == []


@pytest.mark.asyncio
async def test_sink_errors_propagate() -> None:
    with pytest.raises(RuntimeError, match="database unavailable"):
        await AssetExtractor(FailingSink()).ingest(RESPONSE)


@pytest.mark.asyncio
async def test_reports_metrics(sink: ListSink) -> None:
    hook = RecordingMetricsHook()

    await AssetExtractor(sink, metrics_hook=hook).ingest(
        "", brief="photography and video"
    )

    assert hook.increments[names.ASSET_RECORDS_SAVED] == 2
    assert hook.increments[names.ASSET_RECORDS_REJECTED] == 0
    assert hook.increments[names.ASSET_BRIEF_FALLBACKS_TOTAL] == 1
    assert names.ASSET_INGEST_DURATION in hook.latencies
    assert names.RECOVERY_PARSE_DURATION in hook.latencies
