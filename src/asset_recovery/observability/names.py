# src/asset_recovery/observability/names.py

"""Standard metric names for asset-recovery observability.

Use these constants instead of hardcoded strings.

Note: All duration metrics are in milliseconds by convention.
"""

# ============================================================================
# Recovery parser metrics
# ============================================================================

# Duration (label: strategy)
RECOVERY_PARSE_DURATION = "recovery_parse_duration"

# Counters
RECOVERY_RUNS_TOTAL = "recovery_runs_total"  # label: strategy
RECOVERY_EVENTS_TOTAL = "recovery_events_total"  # label: kind
RECOVERY_RECORDS_RECOVERED = "recovery_records_recovered"

# Gauges
RECOVERY_TIERS_ATTEMPTED = "recovery_tiers_attempted"


# ============================================================================
# Asset ingestion metrics
# ============================================================================

# Duration
ASSET_INGEST_DURATION = "asset_ingest_duration"

# Counters
ASSET_RECORDS_SAVED = "asset_records_saved"
ASSET_RECORDS_REJECTED = "asset_records_rejected"
ASSET_BRIEF_FALLBACKS_TOTAL = "asset_brief_fallbacks_total"
