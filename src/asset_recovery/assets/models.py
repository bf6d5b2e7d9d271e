# src/asset_recovery/assets/models.py

from typing import Literal

from pydantic import BaseModel

from asset_recovery.recovery.config import RecordShape


class AssetRecord(BaseModel):
    """An asset as the persistence layer stores it."""

    asset_name: str
    specifications: str | None = None
    source_text: str | None = None
    tags: list[str] = []
    priority: Literal["high", "medium", "low"] | None = None
    estimated_cost_range: Literal["high", "medium", "low"] | None = None
    timeline: str | None = None
    quantity: int | None = None

    class Config:
        extra = "ignore"


ASSET_SHAPE = RecordShape(
    discriminating_key="asset_name",
    optional_fields=(
        "specifications",
        "source_text",
        "tags",
        "priority",
        "estimated_cost_range",
        "timeline",
        "quantity",
    ),
    records_key="assets",
)
