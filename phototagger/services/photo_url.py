from __future__ import annotations

import json

from phototagger.exceptions import PhotoDataError


def photo_url(raw_path: str, width: int = 600, quality: int = 80) -> str:
    """Resized image URL for an Unsplash-style ``raw_path``."""
    separator = "&" if "?" in raw_path else "?"
    return f"{raw_path}{separator}w={width}&q={quality}"


def raw_path_of(data_json: str) -> str:
    """Extract the source image locator from a photo's metadata blob."""
    try:
        data = json.loads(data_json)
    except (TypeError, ValueError) as exc:
        raise PhotoDataError(f"Failed to parse photo data_json: {exc}") from exc
    raw_path = data.get("raw_path") if isinstance(data, dict) else None
    if not raw_path or not isinstance(raw_path, str):
        raise PhotoDataError("Photo data missing raw_path")
    return raw_path


__all__ = ["photo_url", "raw_path_of"]
