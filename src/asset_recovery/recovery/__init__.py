# src/asset_recovery/recovery/__init__.py

"""Recovery parser for generated record lists.

Turns a probabilistically well-formed JSON response (code fences, prose,
trailing commas, fused records, duplicate keys, truncation) into clean,
uniquely-keyed records plus an audit trail of every repair.

Design principles:
- Never raises on bad data: always a ParseResult, possibly empty
- Never fabricates: values come from the response text only
- Never drops silently: every loss is a RecoveryEvent
- Deterministic: same input, same result

Example:
    >>> from asset_recovery.recovery import RecordShape, parse_records
    >>>
    >>> shape = RecordShape(discriminating_key="asset_name", records_key="assets")
    >>> result = parse_records(response_text, shape)
    >>> result.strategy, len(result.records), len(result.events)
"""

from .config import RecordShape
from .errors import ConfigurationError
from .models import (
    EventKind,
    ObjectSpan,
    ParseResult,
    RecoveredRecord,
    RecoveryEvent,
    ScanPosition,
    Strategy,
)
from .pipeline import RecoveryPipeline, parse_records

__all__ = [
    # Entry points
    "parse_records",
    "RecoveryPipeline",
    # Config
    "RecordShape",
    "ConfigurationError",
    # Types
    "EventKind",
    "ObjectSpan",
    "ParseResult",
    "RecoveredRecord",
    "RecoveryEvent",
    "ScanPosition",
    "Strategy",
]
