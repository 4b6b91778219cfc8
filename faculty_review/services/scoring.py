"""
Score aggregation.

Pure functions over rubric maps of the form ``{"[Category] Item label": 1..5}``.
Nothing in this module touches the database; read paths call `effective_total`
to fill in a missing stored percentage without writing it back.

Flat 1-10 ratings are a separate, manually entered track. They are combined
with the rubric track only in reporting (`combined_score`) and are never
derived from a rubric.
"""
import math
import re
from typing import Dict, Iterable, Mapping, Optional

from faculty_review.core.config import settings

RUBRIC_MIN = 1
RUBRIC_MAX = settings.scoring.rubric_item_max

HOD_PERFORMANCE_CATEGORIES = ("Professionalism", "Leadership", "Development", "Service")

DEFAULT_HOD_RUBRIC = {
    "[Professionalism] Compliance": 3,
    "[Professionalism] Punctuality/Attendance": 3,
    "[Professionalism] Competence and Performance": 3,
    "[Leadership] Planning & Organization": 3,
    "[Leadership] Department Duties": 3,
    "[Leadership] Collegial Relationship & Work Delegation": 3,
    "[Leadership] College Committees": 3,
    "[Development] In-Service Training": 3,
    "[Development] Research and Publications": 3,
    "[Development] National and International Conferences": 3,
    "[Service] Students' Engagement": 3,
    "[Service] Community Engagement": 3,
}

_KEY_RE = re.compile(r"^\[(?P<category>[^\[\]]+)\]\s*(?P<label>.+)$")


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; percentages round .5 upwards
    return int(math.floor(value + 0.5))


def percent_of(raw: int, max_score: int) -> int:
    """Integer percentage of raw over max, rounded half-up without float error."""
    return (200 * raw + max_score) // (2 * max_score)


def parse_key(key: str):
    """Split ``"[Category] Label"`` into ``(category, label)``; None if malformed."""
    match = _KEY_RE.match(key.strip()) if isinstance(key, str) else None
    if not match:
        return None
    return match.group("category").strip(), match.group("label").strip()


def validate_rubric(rubric: Mapping[str, int]) -> None:
    """Raise ValueError on malformed keys or scores outside 1-5."""
    if not isinstance(rubric, Mapping):
        raise ValueError("Rubric scores must be an object of '[Category] Item' to score")
    for key, value in rubric.items():
        if parse_key(key) is None:
            raise ValueError(f"Rubric key '{key}' must look like '[Category] Item'")
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Rubric score for '{key}' must be an integer")
        if not RUBRIC_MIN <= value <= RUBRIC_MAX:
            raise ValueError(f"Rubric score for '{key}' must be between {RUBRIC_MIN} and {RUBRIC_MAX}")


def categorize(rubric: Mapping[str, int]) -> Dict[str, Dict[str, int]]:
    """Partition rubric items by their bracketed category prefix, keeping input order."""
    grouped: Dict[str, Dict[str, int]] = {}
    for key, value in rubric.items():
        parsed = parse_key(key)
        if parsed is None:
            continue
        category, label = parsed
        grouped.setdefault(category, {})[label] = value
    return grouped


def category_subtotals(rubric: Mapping[str, int], categories: Optional[Iterable[str]] = None) -> Dict[str, Dict[str, int]]:
    """Raw sum and maximum per category. Categories without items are omitted."""
    grouped = categorize(rubric)
    wanted = list(categories) if categories is not None else list(grouped)
    subtotals = {}
    for category in wanted:
        items = grouped.get(category)
        if not items:
            continue
        subtotals[category] = {
            "raw": sum(items.values()),
            "max": len(items) * RUBRIC_MAX,
            "items": len(items),
        }
    return subtotals


def normalize(rubric: Optional[Mapping[str, int]], categories: Optional[Iterable[str]] = None) -> Optional[int]:
    """
    Rubric percentage: round(raw / (items x 5) x 100).

    Returns None, not 0, when there is nothing to score.
    """
    if not rubric:
        return None
    subtotals = category_subtotals(rubric, categories)
    raw = sum(s["raw"] for s in subtotals.values())
    max_score = sum(s["max"] for s in subtotals.values())
    if max_score <= 0:
        return None
    return percent_of(raw, max_score)


def weighted_total(rubric: Mapping[str, int], weights: Mapping[str, float]) -> Optional[int]:
    """
    Weighted mean of per-category percentages on a 0-100 scale.

    Empty categories drop out together with their weight.
    """
    subtotals = category_subtotals(rubric, weights.keys())
    total_weight = sum(weights[c] for c in subtotals)
    if total_weight <= 0:
        return None
    weighted = sum(weights[c] * s["raw"] / s["max"] for c, s in subtotals.items())
    return round_half_up(weighted / total_weight * 100)


def effective_total(stored: Optional[int], rubric: Optional[Mapping[str, int]],
                    categories: Optional[Iterable[str]] = None) -> Optional[int]:
    """Stored percentage when present, otherwise computed on the fly from the rubric."""
    if stored is not None:
        return stored
    return normalize(rubric, categories)


def combined_score(total_combined: Optional[int], hod_score: Optional[int], asst_score: Optional[int]) -> int:
    if total_combined is not None:
        return total_combined
    return (hod_score or 0) + (asst_score or 0)


def performance_percentage(combined: Optional[float], max_possible: Optional[float]) -> Optional[int]:
    if combined is None or not max_possible:
        return None
    if isinstance(combined, int) and isinstance(max_possible, int):
        return percent_of(combined, max_possible)
    return round_half_up(combined / max_possible * 100)


def performance_band(percentage: Optional[int]) -> Optional[str]:
    if percentage is None:
        return None
    if percentage >= 90:
        return "Excellent"
    if percentage >= 80:
        return "Very Good"
    if percentage >= 70:
        return "Good"
    if percentage >= 50:
        return "Average"
    return "Weak"
