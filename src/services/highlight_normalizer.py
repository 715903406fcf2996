from collections.abc import Mapping
from typing import Any, Dict, List, Sequence

from src.constants.config import DEFAULT_SEVERITY, HIGHLIGHT_KEYS


def find_raw_highlights(
    analysis: Mapping[str, Any], keys: Sequence[str] = HIGHLIGHT_KEYS
) -> List[Any]:
    """Return the list under the first candidate key that holds one, else []."""
    for key in keys:
        value = analysis.get(key)
        if isinstance(value, list):
            return value
    return []


def normalize_highlights(analysis: Mapping[str, Any]) -> List[Dict[str, str]]:
    """
    Reconcile the model's highlight array into canonical highlight dicts.
    Severity is passed through as given; only a missing value falls back to "medium".
    """
    if not isinstance(analysis, Mapping):
        return []

    highlights = []
    for index, raw in enumerate(find_raw_highlights(analysis), start=1):
        entry = raw if isinstance(raw, Mapping) else {}
        highlights.append(
            {
                "title": str(entry.get("title") or f"Highlight {index}"),
                "severity": str(entry.get("severity") or DEFAULT_SEVERITY),
                "snippet": str(entry.get("snippet") or ""),
                "note": str(entry.get("note") or ""),
            }
        )
    return highlights
