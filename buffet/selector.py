"""
Chart-Type Context Selector

Maps (entity type, field identifier, display-count bucket) to the ordered
chart kinds a buffet should render.  Pure lookup: it never sees entity data.

Lookup order on a miss:
    1. exact (entity_type, field_id, bucket)
    2. (entity_type, field_id, "all")
    3. (DEFAULT_ENTITY_TYPE, field_id, bucket), then bucket "all"
    4. legacy heuristic on result size and ranking-style fields
"""

from __future__ import annotations

import math

from buffet.catalog import COLUMN_ALIASES, COLUMN_CATALOG, get_recipe
from utils.config import KnownValues

DISPLAY_BUCKETS: tuple[int, ...] = (5, 10, 15, 20)
ALL_BUCKET = "all"
DEFAULT_ENTITY_TYPE = "agency"

DISTRIBUTION_KINDS = (
    "verticalBar", "horizontalBar", "pie", "doughnut",
    "line", "funnel", "stackedBar", "area",
)
TREND_KINDS = ("fiscalTrend", "fiscalArea", "fiscalBar")

_FULL_BUFFET = (
    "verticalBar", "horizontalBar", "pie", "doughnut", "line", "funnel",
    "stackedBar", "area", "fiscalTrend", "fiscalArea", "fiscalBar",
)
# Reference-ID fields read as rankings; circular charts add nothing there
_RANKING_BUFFET = ("funnel", "horizontalBar", "verticalBar", "fiscalTrend", "fiscalBar")
# Pies stop being legible past fifteen slices
_WIDE_BUFFET = tuple(k for k in _FULL_BUFFET if k not in ("pie", "doughnut"))


def _build_matrix() -> dict[tuple[str, str, int | str], tuple[str, ...]]:
    matrix: dict[tuple[str, str, int | str], tuple[str, ...]] = {}
    for field_id in list(COLUMN_CATALOG) + list(COLUMN_ALIASES):
        recipe = get_recipe(field_id)
        for entity_type in sorted(KnownValues.ENTITY_TYPES):
            for bucket in DISPLAY_BUCKETS + (ALL_BUCKET,):
                if recipe.ranking:
                    kinds = _RANKING_BUFFET
                elif bucket in (20, ALL_BUCKET) and not recipe.categorical:
                    kinds = _WIDE_BUFFET
                else:
                    kinds = _FULL_BUFFET
                matrix[(entity_type, field_id, bucket)] = kinds
    return matrix


CHART_TYPE_MATRIX = _build_matrix()


def snap_display_count(display_count: int | str | None) -> int | str:
    """Round a requested count up to the nearest bucket.

    Examples:
        snap_display_count(3) -> 5
        snap_display_count(12) -> 15
        snap_display_count(25) -> "all"
        snap_display_count("all") -> "all"
    """
    if display_count is None or display_count == ALL_BUCKET:
        return ALL_BUCKET
    for bucket in DISPLAY_BUCKETS:
        if display_count <= bucket:
            return bucket
    return ALL_BUCKET


def legacy_chart_kinds(field_id: str, result_size: float) -> list[str]:
    """Heuristic used when the matrix has no entry for a field."""
    if get_recipe(field_id).ranking:
        return ["funnel", "horizontalBar", "verticalBar"]
    if result_size <= 5:
        return ["verticalBar", "horizontalBar", "pie", "doughnut"]
    if result_size <= 10:
        return ["horizontalBar", "stackedBar", "pie"]
    return ["horizontalBar", "funnel"]


def select_chart_kinds(entity_type: str, field_id: str,
                       display_count: int | str | None,
                       result_size: int | None = None) -> list[str]:
    """Return the ordered chart kinds for one buffet.

    Args:
        entity_type: "agency", "oem" or "vendor".
        field_id: Field identifier (aliases allowed).
        display_count: Requested Top-N count or "all".
        result_size: Number of categories actually displayed; used only by
            the legacy heuristic (defaults to ``display_count``).
    """
    bucket = snap_display_count(display_count)
    for key in (
        (entity_type, field_id, bucket),
        (entity_type, field_id, ALL_BUCKET),
        (DEFAULT_ENTITY_TYPE, field_id, bucket),
        (DEFAULT_ENTITY_TYPE, field_id, ALL_BUCKET),
    ):
        kinds = CHART_TYPE_MATRIX.get(key)
        if kinds:
            return list(kinds)

    if result_size is None:
        result_size = display_count if isinstance(display_count, int) else math.inf
    return legacy_chart_kinds(field_id, result_size)
