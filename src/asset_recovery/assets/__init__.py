from .keywords import asset_names_from_brief, assets_from_brief
from .models import ASSET_SHAPE, AssetRecord
from .service import AssetExtractor, AssetSink, IngestionReport, RejectedRecord

__all__ = [
    "ASSET_SHAPE",
    "AssetExtractor",
    "AssetRecord",
    "AssetSink",
    "IngestionReport",
    "RejectedRecord",
    "asset_names_from_brief",
    "assets_from_brief",
]
