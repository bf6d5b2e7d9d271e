# src/asset_recovery/assets/keywords.py

"""Rule-based asset names from a project brief.

Used only when a generated response yields no records at all.
"""

from .models import AssetRecord

DEFAULT_ASSET = "General Requirements"

ASSET_KEYWORDS: dict[str, tuple[str, ...]] = {
    "printing": ("print", "poster", "flyer", "brochure", "signage"),
    "graphics": ("graphic", "creative"),
    "banners": ("banner",),
    "staging": ("stage", "platform", "backdrop", "display"),
    "audio": ("sound", "speaker", "microphone", "audio", "music"),
    "lighting": ("light", "lighting", "illumination", "led"),
    "catering": ("catering",),
    "food": ("food", "meal"),
    "beverages": ("beverage", "refreshment"),
    "design": ("design", "logo"),
    "branding": ("branding",),
    "marketing": ("marketing",),
    "transport": ("transport", "shipping"),
    "logistics": ("logistics",),
    "delivery": ("delivery",),
    "photography": ("photo", "photography", "picture"),
    "video": ("video", "film", "recording"),
    "security": ("security", "guard"),
}


def asset_names_from_brief(brief: str) -> list[str]:
    """Categories whose keywords appear in the brief, in table order.

    Matching is case-insensitive substring matching; a brief that matches
    nothing yields the single default category.
    """
    text = brief.lower()
    names = [
        category.capitalize()
        for category, keywords in ASSET_KEYWORDS.items()
        if any(keyword in text for keyword in keywords)
    ]
    return names or [DEFAULT_ASSET]


def assets_from_brief(brief: str) -> list[AssetRecord]:
    return [
        AssetRecord(
            asset_name=name,
            specifications=f"Requirements for {name.lower()} based on project brief",
            priority="medium",
            estimated_cost_range="medium",
        )
        for name in asset_names_from_brief(brief)
    ]
