# Assets
from .assets import (
    ASSET_SHAPE,
    AssetExtractor,
    AssetRecord,
    AssetSink,
    IngestionReport,
    assets_from_brief,
)

# Observability
from .observability import LoggingMetricsHook, MetricsHook, NoOpMetricsHook

# Recovery
from .recovery import (
    ConfigurationError,
    EventKind,
    ObjectSpan,
    ParseResult,
    RecordShape,
    RecoveredRecord,
    RecoveryEvent,
    RecoveryPipeline,
    Strategy,
    parse_records,
)

__all__ = [
    # Assets
    "ASSET_SHAPE",
    "AssetExtractor",
    "AssetRecord",
    "AssetSink",
    "IngestionReport",
    "assets_from_brief",
    # Observability
    "LoggingMetricsHook",
    "MetricsHook",
    "NoOpMetricsHook",
    # Recovery
    "ConfigurationError",
    "EventKind",
    "ObjectSpan",
    "ParseResult",
    "RecordShape",
    "RecoveredRecord",
    "RecoveryEvent",
    "RecoveryPipeline",
    "Strategy",
    "parse_records",
]
