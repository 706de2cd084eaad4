"""
AI Helper Utilities
Common utility functions shared by the provider clients and recipes
"""

import re
from typing import Any, Dict, Iterable, Optional


def provider_error_message(payload: Dict[str, Any], fallback: str) -> str:
    """
    Pull the provider's own error message out of an error envelope

    Handles {"error": {"message": ...}}, {"error": "..."} and {"message": ...}.

    Args:
        payload: Decoded error body
        fallback: Message to use when the body carries none

    Returns:
        str: Error message
    """
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if payload.get("message"):
        return str(payload["message"])
    if isinstance(error, str) and error:
        return error
    return fallback


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to maximum length

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add (default: "...")

    Returns:
        str: Truncated text
    """
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def compact_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace to single spaces and trim"""
    return re.sub(r"\s+", " ", text or "").strip()


def join_labels(labels: Iterable[str], separator: str = ", ") -> str:
    """
    Join non-empty preference labels

    Args:
        labels: Labels such as ["Cultural", "Nature"]
        separator: Joiner (default: ", ")

    Returns:
        str: Joined labels, "" when none are usable
    """
    return separator.join(label.strip() for label in labels if label and label.strip())


def to_float(value: Any) -> Optional[float]:
    """
    Coerce a metadata value to float

    Vector metadata stores numbers as numbers, numeric strings, or "".

    Returns:
        float or None when the value is missing or not numeric
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def format_distance(distance_km: float) -> str:
    """
    Format a distance the way the AR explorer shows it

    Args:
        distance_km: Distance in kilometres

    Returns:
        str: "350m" under one kilometre, "2.4km" otherwise
    """
    if distance_km < 1:
        return f"{round(distance_km * 1000)}m"
    return f"{distance_km:.1f}km"
