"""Form aspect-ratio labels -> provider aspect_ratio codes."""

DEFAULT_ASPECT_RATIO = "1:1"

ASPECT_RATIOS: dict[str, str] = {
    "portrait": "9:16",
    "landscape": "16:9",
    "wide": "21:9",
    "square": DEFAULT_ASPECT_RATIO,
}


def resolve_aspect_ratio(label: str | None) -> str:
    """Case-sensitive lookup; unknown or missing labels fall back to square."""
    if not label:
        return DEFAULT_ASPECT_RATIO
    return ASPECT_RATIOS.get(label, DEFAULT_ASPECT_RATIO)
