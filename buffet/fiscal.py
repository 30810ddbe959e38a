"""
Fiscal-Year Aggregator

Sums a field per fiscal year across entities and narrows entities to a
fiscal-year window.

Fiscal data can sit at either nesting order: a year map on the field root
(years over categories), year maps on each category or ranked item
(categories over years), or a year-keyed outer map (NESTED_BY_YEAR and
year-keyed NESTED_BY_ENTITY).  For each entity the first of these that
exists is used so nothing is counted twice.

Year filters are applied while accumulating, and apply_year_filter()
recomputes every derived total on copies of the entities so Top-N rankings
reflect only the selected window.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable

from buffet.catalog import FISCAL_KEYS, TOTAL_KEYS, ColumnRecipe, FieldShape, get_recipe
from buffet.extractor import (
    first_present,
    iter_entries,
    normalize_year_map,
    read_field_value,
    resolve_container,
    year_amount,
    year_of,
)
from buffet.models import Entity, FiscalPoint
from utils.patterns import YEAR_RANGE
from utils.strings import is_number, safe_float

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearOverYear:
    """Change between one fiscal point and the one before it."""

    year: str
    previous_year: str
    change: float
    percent: float          # 0.0 when the previous total is 0


# ── Year filters ──────────────────────────────────────────────────────────────


def parse_year_filter(year_filter: str | int | None) -> list[str] | None:
    """Expand a year filter into the list of selected years.

    Examples:
        parse_year_filter("2023") -> ["2023"]
        parse_year_filter("2023-2025") -> ["2023", "2024", "2025"]
        parse_year_filter("all") -> None

    Raises:
        ValueError: If the filter is not a year, a range, or "all".
    """
    if year_filter is None:
        return None
    text = str(year_filter).strip()
    if text in ("", "all"):
        return None
    match = YEAR_RANGE.match(text)
    if not match:
        raise ValueError(f"Invalid fiscal year filter: {year_filter!r}")
    start = int(match.group(1))
    end = int(match.group(2) or start)
    if end < start:
        start, end = end, start
    return [str(year) for year in range(start, end + 1)]


def year_filter_label(years: list[str] | None) -> str:
    """Title text for the active fiscal-year window."""
    if not years:
        return "All Fiscal Years"
    if len(years) == 1:
        return f"FY{years[0]} Only"
    return f"FY{years[0]}-{years[-1]}"


# ── Aggregation ───────────────────────────────────────────────────────────────


def _root_year_keys(recipe: ColumnRecipe) -> tuple[str, ...]:
    if recipe.shape in (FieldShape.SCALAR_WITH_YEARS, FieldShape.GENERIC):
        return recipe.year_keys
    return FISCAL_KEYS


def entity_year_totals(recipe: ColumnRecipe, value: Any, entity_name: str = "") -> dict[str, float]:
    """Per-year totals for one decoded field value."""
    if value is None:
        return {}

    if recipe.shape is FieldShape.NESTED_BY_YEAR:
        container = resolve_container(recipe, value)
        if isinstance(container, dict):
            totals: dict[str, float] = {}
            for key, year_obj in container.items():
                year = year_of(key)
                if year is None:
                    continue
                _, raw_total = first_present(year_obj, recipe.outer_total_keys)
                if raw_total is not None:
                    amount = year_amount(raw_total)
                else:
                    amount = sum(e.value for e in iter_entries(
                        replace(recipe, path=()), {key: year_obj}, entity_name))
                totals[year] = totals.get(year, 0.0) + amount
            if totals:
                return totals

    if isinstance(value, dict):
        _, raw_years = first_present(value, _root_year_keys(recipe))
        root_years = normalize_year_map(raw_years)
        if root_years:
            return root_years

    totals = {}
    for entry in iter_entries(recipe, value, entity_name):
        for year, amount in (entry.years or {}).items():
            totals[year] = totals.get(year, 0.0) + amount
    return totals


def aggregate_fiscal_years(field_id: str, entities: Iterable[Entity],
                           years: list[str] | None = None) -> list[FiscalPoint]:
    """Sum ``field_id`` per fiscal year across entities.

    Only years in ``years`` are accumulated when it is given.  The result
    is sorted ascending by year.
    """
    recipe = get_recipe(field_id)
    wanted = set(years) if years else None
    acc: dict[str, float] = {}
    for entity in entities:
        ok, value = read_field_value(entity, field_id)
        if not ok:
            continue
        for year, amount in entity_year_totals(recipe, value, entity.name).items():
            if wanted is not None and year not in wanted:
                continue
            acc[year] = acc.get(year, 0.0) + amount
    return [FiscalPoint(year, acc[year]) for year in sorted(acc, key=int)]


def available_fiscal_years(field_id: str, entities: Iterable[Entity]) -> list[str]:
    """Every fiscal year observed for ``field_id``, newest first.

    Looks at both nesting orders so a year is offered whether it appears on
    the field root or only on individual categories.
    """
    recipe = get_recipe(field_id)
    seen: set[str] = set()
    for entity in entities:
        ok, value = read_field_value(entity, field_id)
        if not ok or value is None:
            continue
        seen.update(entity_year_totals(recipe, value, entity.name))
        for entry in iter_entries(recipe, value, entity.name):
            seen.update(entry.years or ())
    return sorted(seen, key=int, reverse=True)


def compute_yoy_changes(series: list[FiscalPoint]) -> list[YearOverYear]:
    """Year-over-year changes for points 2..n (the first point has none)."""
    changes: list[YearOverYear] = []
    for prev, cur in zip(series, series[1:]):
        change = cur.total - prev.total
        percent = (change / prev.total * 100) if prev.total else 0.0
        changes.append(YearOverYear(cur.year, prev.year, change, percent))
    return changes


# ── Year-window recomputation ─────────────────────────────────────────────────


def _filter_year_map(raw: dict, wanted: set[str]) -> dict:
    return {k: v for k, v in raw.items() if year_of(k) in wanted}


def _narrow_item(obj: dict, value_keys: tuple[str, ...], year_keys: tuple[str, ...],
                 wanted: set[str], ratio: float = 0.0) -> float:
    """Narrow one object's year map and rewrite its total; returns the total.

    Objects without a year map keep ``ratio`` of their current total.
    """
    year_key, raw_years = first_present(obj, year_keys)
    value_key, raw_value = first_present(obj, value_keys)
    if isinstance(raw_years, dict):
        filtered = _filter_year_map(raw_years, wanted)
        obj[year_key] = filtered
        total = sum(year_amount(v) for v in filtered.values())
    else:
        total = safe_float(raw_value) * ratio
    obj[value_key or value_keys[0]] = total
    return total


def _narrow_collection(recipe: ColumnRecipe, collection: Any, wanted: set[str],
                       ratio: float = 0.0) -> float:
    total = 0.0
    if isinstance(collection, dict):
        for name in list(collection):
            obj = collection[name]
            if isinstance(obj, dict):
                total += _narrow_item(obj, recipe.value_keys, recipe.year_keys, wanted, ratio)
            elif is_number(obj) or isinstance(obj, str):
                collection[name] = safe_float(obj) * ratio
                total += collection[name]
    elif isinstance(collection, list):
        for item in collection:
            if isinstance(item, dict):
                total += _narrow_item(item, recipe.value_keys, recipe.year_keys, wanted, ratio)
    return total


def _root_window_ratio(value: Any, wanted: set[str]) -> float:
    """Share of the field-level year map that falls inside the window."""
    _, raw_years = first_present(value, FISCAL_KEYS)
    years = normalize_year_map(raw_years)
    if not years:
        return 0.0
    full = sum(years.values())
    inside = sum(amount for year, amount in years.items() if year in wanted)
    return inside / full if full else 0.0


def _drop_other_years(container: dict, wanted: set[str]) -> None:
    for key in list(container):
        if year_of(key) not in wanted:
            del container[key]


def _narrow_root(value: dict, wanted: set[str]) -> None:
    key, raw_years = first_present(value, FISCAL_KEYS)
    if isinstance(raw_years, dict):
        filtered = _filter_year_map(raw_years, wanted)
        value[key] = filtered
        total_key, _ = first_present(value, ("total_obligated", "total"))
        if total_key:
            value[total_key] = sum(year_amount(v) for v in filtered.values())


def narrow_field_value(recipe: ColumnRecipe, value: Any, wanted: set[str]) -> Any:
    """Return ``value`` restricted to ``wanted`` years with totals recomputed.

    ``value`` must already be a private copy; it is modified in place.
    Amounts that carry no year information of their own are scaled by the
    share of the field-level year map inside the window, or zeroed when
    there is none.
    """
    if value is None:
        return None
    if is_number(value):
        return 0.0
    shape = recipe.shape

    if shape is FieldShape.SCALAR_WITH_YEARS:
        if isinstance(value, dict):
            _narrow_item(value, recipe.total_keys, recipe.year_keys, wanted)
        return value

    if shape is FieldShape.GENERIC:
        if not isinstance(value, dict):
            return value
        nested = {k: v for k, v in value.items()
                  if isinstance(v, dict) and k not in FISCAL_KEYS
                  and first_present(v, TOTAL_KEYS)[0] is not None}
        if nested:
            for obj in nested.values():
                _narrow_item(obj, TOTAL_KEYS, FISCAL_KEYS, wanted)
            _narrow_root(value, wanted)
            return value
        _, raw_years = first_present(value, FISCAL_KEYS)
        years = normalize_year_map(raw_years) or {}
        narrowed = {y: amount for y, amount in years.items() if y in wanted}
        return {"total": sum(narrowed.values()), "fiscal_years": narrowed}

    ratio = _root_window_ratio(value, wanted)
    container = resolve_container(recipe, value)
    if shape is FieldShape.NESTED_BY_YEAR:
        if isinstance(container, dict):
            _drop_other_years(container, wanted)
    elif shape is FieldShape.NESTED_BY_ENTITY:
        if isinstance(container, dict) and any(year_of(k) for k in container):
            _drop_other_years(container, wanted)
        else:
            outer_objs = container.values() if isinstance(container, dict) else container or []
            for outer_obj in outer_objs:
                if not isinstance(outer_obj, dict):
                    continue
                _, inner = first_present(outer_obj, recipe.inner_keys)
                subtotal = _narrow_collection(recipe, inner, wanted, ratio)
                total_key, _ = first_present(outer_obj, recipe.outer_total_keys)
                if total_key:
                    outer_obj[total_key] = subtotal
    else:
        _narrow_collection(recipe, container, wanted, ratio)

    if isinstance(value, dict):
        _narrow_root(value, wanted)
    return value


def apply_year_filter(entities: Iterable[Entity], field_id: str,
                      years: list[str]) -> list[Entity]:
    """Return copies of ``entities`` narrowed to ``years`` for ``field_id``.

    The input entities are left untouched.  Malformed values pass through
    unchanged so the extractor reports them.
    """
    recipe = get_recipe(field_id)
    wanted = set(years)
    narrowed: list[Entity] = []
    for entity in entities:
        ok, value = read_field_value(entity, field_id)
        if not ok or value is None:
            narrowed.append(entity)
            continue
        fields = dict(entity.fields)
        fields[field_id] = narrow_field_value(recipe, copy.deepcopy(value), wanted)
        narrowed.append(replace(entity, fields=fields))
    logger.debug("Applied fiscal year window %s to %d entities for %s",
                 years, len(narrowed), field_id)
    return narrowed
