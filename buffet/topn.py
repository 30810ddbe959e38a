"""
Top-N / Percentage Engine

Ranks category aggregates, keeps the first ``display_count`` and folds the
remainder into one "All Other" overflow bucket.  Percentages are computed
against one of two explicit bases:

    total      sum of every category before slicing
    displayed  sum of the returned items, overflow bucket included

The base is a required argument.  With ``displayed`` and the overflow
bucket included, the returned percentages sum to 100.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from buffet.models import PERCENTAGE_BASES, CategoryAggregate

OVERFLOW_LABEL = "All Other"


@dataclass(frozen=True)
class BucketedCategory:
    """A ranked category (or the overflow bucket) with its percentage."""

    name: str
    value: float
    percentage: float                 # 0-100 against the selected base
    rank: int | None                  # None for the overflow bucket
    is_overflow_bucket: bool = False
    folded_count: int = 0             # categories folded into the overflow bucket


@dataclass(frozen=True)
class TopNResult:
    items: list[BucketedCategory]
    total_all: float
    total_displayed: float
    base_total: float
    percentage_base: str
    category_count: int

    @property
    def ranked(self) -> list[BucketedCategory]:
        """Items without the overflow bucket."""
        return [i for i in self.items if not i.is_overflow_bucket]

    @property
    def overflow(self) -> BucketedCategory | None:
        for item in self.items:
            if item.is_overflow_bucket:
                return item
        return None


def select_top_n(categories: Iterable[CategoryAggregate],
                 display_count: int | str,
                 include_overflow_bucket: bool,
                 percentage_base: str) -> TopNResult:
    """Sort, slice and bucket ``categories``.

    Args:
        categories: Extracted aggregates; any existing overflow entries are
            ignored so they never take part in ranking.
        display_count: Number of categories to keep, or "all".
        include_overflow_bucket: Append an "All Other" entry for the
            remainder when there is one.
        percentage_base: "total" or "displayed".

    Returns:
        TopNResult with items ranked by value descending (ties keep their
        input order).

    Raises:
        ValueError: If ``percentage_base`` or ``display_count`` is invalid.
    """
    if percentage_base not in PERCENTAGE_BASES:
        raise ValueError(
            f"percentage_base must be one of {sorted(PERCENTAGE_BASES)}, got {percentage_base!r}"
        )
    pool = [c for c in categories if not c.is_overflow_bucket]
    ranked = sorted(pool, key=lambda c: -c.value)

    if display_count == "all":
        limit = len(ranked)
    elif isinstance(display_count, int) and not isinstance(display_count, bool) \
            and display_count >= 1:
        limit = display_count
    else:
        raise ValueError(f"display_count must be a positive integer or 'all', got {display_count!r}")

    shown = ranked[:limit]
    total_all = sum(c.value for c in ranked)
    total_shown = sum(c.value for c in shown)
    remainder = total_all - total_shown

    overflow: CategoryAggregate | None = None
    if include_overflow_bucket and remainder > 0 and len(ranked) > limit:
        overflow = CategoryAggregate(OVERFLOW_LABEL, remainder, is_overflow_bucket=True)

    total_displayed = total_shown + (overflow.value if overflow else 0.0)
    base_total = total_all if percentage_base == "total" else total_displayed

    def pct(value: float) -> float:
        return value / base_total * 100 if base_total else 0.0

    items = [
        BucketedCategory(name=c.name, value=c.value, percentage=pct(c.value), rank=i)
        for i, c in enumerate(shown, start=1)
    ]
    if overflow is not None:
        items.append(BucketedCategory(
            name=overflow.name,
            value=overflow.value,
            percentage=pct(overflow.value),
            rank=None,
            is_overflow_bucket=True,
            folded_count=len(ranked) - limit,
        ))

    return TopNResult(
        items=items,
        total_all=total_all,
        total_displayed=total_displayed,
        base_total=base_total,
        percentage_base=percentage_base,
        category_count=len(ranked),
    )
