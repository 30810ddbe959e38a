"""
Category Extractor

Walks each entity's field value according to its ColumnRecipe and produces
flat CategoryAggregate lists.  Categories are merged across entities (the
"Top 15 Resellers" of a report are the top resellers across the whole
population, not per agency) in first-seen order so results are
deterministic.

A malformed field value on one entity never aborts extraction: the entity
is logged, recorded as an ``error_skip`` and contributes nothing.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Iterable, Iterator

from buffet.catalog import (
    FISCAL_KEYS,
    TOTAL_KEYS,
    YEAR_VALUE_KEYS,
    ColumnRecipe,
    FieldShape,
    get_recipe,
)
from buffet.diagnostics import BuffetDiagnostics
from buffet.models import CategoryAggregate, Entity
from utils.patterns import FISCAL_YEAR_KEY
from utils.strings import is_number, safe_float

logger = logging.getLogger(__name__)


class FieldParseError(ValueError):
    """A serialized field value could not be decoded."""


@dataclass(frozen=True)
class CategoryEntry:
    """One category contribution from a single entity."""

    name: str
    value: float
    years: dict[str, float] | None = None


# ── Decoding ──────────────────────────────────────────────────────────────────


def _reject_constant(name: str) -> Any:
    raise FieldParseError(f"non-finite number {name}")


def load_field_value(raw: Any) -> Any:
    """Return ``raw`` with JSON strings decoded.

    Raises:
        FieldParseError: If ``raw`` is a string that is not valid JSON or
            holds a NaN/Infinity literal.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return json.loads(text, parse_constant=_reject_constant)
        except json.JSONDecodeError as exc:
            raise FieldParseError(f"invalid JSON: {exc.msg} at position {exc.pos}") from exc
    return raw


def read_field_value(entity: Entity, field_id: str,
                     diagnostics: BuffetDiagnostics | None = None) -> tuple[bool, Any]:
    """Decode one entity's field value.

    Returns ``(ok, value)``; ``ok`` is False when the value was malformed
    and the entity must be skipped for this field.
    """
    try:
        return True, load_field_value(entity.get_field(field_id))
    except FieldParseError as exc:
        logger.warning("Skipping %s for %r: %s", field_id, entity.name, exc)
        if diagnostics is not None:
            diagnostics.add_skip("error_skip", f"{field_id}: {exc}", item=entity.name)
        return False, None


def decode_field_values(field_id: str, entities: Iterable[Entity],
                        diagnostics: BuffetDiagnostics | None = None) -> list[Entity]:
    """Return entities whose ``field_id`` value is decoded exactly once.

    Entities holding a serialized string get a derived copy with the parsed
    object.  Malformed values are logged once and replaced by None on the
    copy so later passes treat them as absent.
    """
    decoded: list[Entity] = []
    for entity in entities:
        raw = entity.get_field(field_id)
        if not isinstance(raw, (str, bytes, bytearray)):
            decoded.append(entity)
            continue
        ok, value = read_field_value(entity, field_id, diagnostics)
        fields = dict(entity.fields)
        fields[field_id] = value if ok else None
        decoded.append(replace(entity, fields=fields))
    return decoded


# ── Shape walking ─────────────────────────────────────────────────────────────


def first_present(obj: Any, keys: Iterable[str]) -> tuple[str | None, Any]:
    """Return ``(key, value)`` for the first of ``keys`` set on ``obj``."""
    if not isinstance(obj, dict):
        return None, None
    for key in keys:
        if obj.get(key) is not None:
            return key, obj[key]
    return None, None


def year_of(key: Any) -> str | None:
    """Normalize a year-map key ("2024", "FY 2024", 2024) to "2024"."""
    match = FISCAL_YEAR_KEY.match(str(key).strip())
    return match.group(1) if match else None


def year_amount(raw: Any) -> float:
    """Amount stored under one year key (number or ``{"obligations": n}``)."""
    if isinstance(raw, dict):
        _, raw = first_present(raw, YEAR_VALUE_KEYS)
    return safe_float(raw)


def normalize_year_map(raw: Any) -> dict[str, float] | None:
    """Return ``{year: amount}`` from a year-keyed mapping, or None."""
    if not isinstance(raw, dict):
        return None
    years: dict[str, float] = {}
    for key, val in raw.items():
        year = year_of(key)
        if year is None:
            continue
        years[year] = years.get(year, 0.0) + year_amount(val)
    return years or None


def resolve_container(recipe: ColumnRecipe, value: Any) -> Any:
    """Locate the category map/array inside a field value."""
    if not recipe.path or isinstance(value, list):
        return value
    _, container = first_present(value, recipe.path)
    return container


def _item_entry(recipe: ColumnRecipe, name: str, obj: Any) -> CategoryEntry | None:
    if isinstance(obj, dict):
        _, raw_years = first_present(obj, recipe.year_keys)
        years = normalize_year_map(raw_years)
        key, raw_value = first_present(obj, recipe.value_keys)
        if key is not None:
            amount = safe_float(raw_value)
        else:
            amount = sum(years.values()) if years else 0.0
        return CategoryEntry(name, amount, years)
    if is_number(obj) or isinstance(obj, str):
        return CategoryEntry(name, safe_float(obj))
    return None


def _named_entries(recipe: ColumnRecipe, container: dict) -> Iterator[CategoryEntry]:
    for name, obj in container.items():
        entry = _item_entry(recipe, str(name), obj)
        if entry is not None:
            yield entry


def _ranked_entries(recipe: ColumnRecipe, container: list) -> Iterator[CategoryEntry]:
    for item in container:
        _, name = first_present(item, recipe.name_keys)
        if name is None:
            continue
        entry = _item_entry(recipe, str(name), item)
        if entry is not None:
            yield entry


def _collection_entries(recipe: ColumnRecipe, collection: Any) -> Iterator[CategoryEntry]:
    if isinstance(collection, dict):
        yield from _named_entries(recipe, collection)
    elif isinstance(collection, list):
        yield from _ranked_entries(recipe, collection)


def _nested_by_year_entries(recipe: ColumnRecipe, container: Any) -> Iterator[CategoryEntry]:
    if not isinstance(container, dict):
        return
    for key, year_obj in container.items():
        year = year_of(key)
        if year is None:
            continue
        _, inner = first_present(year_obj, recipe.inner_keys)
        for entry in _collection_entries(recipe, inner):
            yield replace(entry, years={year: entry.value})


def _nested_by_entity_entries(recipe: ColumnRecipe, container: Any) -> Iterator[CategoryEntry]:
    if isinstance(container, dict):
        outer_items = list(container.items())
    elif isinstance(container, list):
        outer_items = [(None, obj) for obj in container]
    else:
        return
    for key, outer_obj in outer_items:
        year = year_of(key) if key is not None else None
        _, inner = first_present(outer_obj, recipe.inner_keys)
        for entry in _collection_entries(recipe, inner):
            yield replace(entry, years={year: entry.value}) if year else entry


def _generic_entries(value: Any, entity_name: str) -> Iterator[CategoryEntry]:
    if is_number(value):
        yield CategoryEntry(entity_name, float(value))
        return
    if isinstance(value, list):
        yield from _ranked_entries(_GENERIC_ITEMS, value)
        return
    if not isinstance(value, dict):
        return

    nested = {
        key: obj for key, obj in value.items()
        if isinstance(obj, dict) and key not in FISCAL_KEYS
        and first_present(obj, TOTAL_KEYS)[0] is not None
    }
    if nested:
        yield from _named_entries(_GENERIC_ITEMS, nested)
        return

    total = sum(float(v) for v in value.values() if is_number(v))
    _, raw_years = first_present(value, FISCAL_KEYS)
    years = normalize_year_map(raw_years)
    if total == 0 and years:
        total = sum(years.values())
    yield CategoryEntry(entity_name, total, years)


# Item-level keys used when walking a field the catalog does not know
_GENERIC_ITEMS = ColumnRecipe(FieldShape.NAMED_CATEGORY_MAP, "",
                              value_keys=TOTAL_KEYS, year_keys=FISCAL_KEYS)


def iter_entries(recipe: ColumnRecipe, value: Any, entity_name: str) -> Iterator[CategoryEntry]:
    """Yield every category contribution in one decoded field value.

    Values of an unexpected type yield nothing rather than raising.
    """
    if value is None:
        return
    shape = recipe.shape

    if shape is FieldShape.SCALAR_WITH_YEARS:
        if is_number(value):
            yield CategoryEntry(entity_name, float(value))
        elif isinstance(value, dict):
            entry = _item_entry(replace(recipe, value_keys=recipe.total_keys),
                                entity_name, value)
            if entry is not None:
                yield entry
    elif shape is FieldShape.NAMED_CATEGORY_MAP:
        yield from _collection_entries(recipe, resolve_container(recipe, value))
    elif shape is FieldShape.RANKED_ARRAY:
        container = resolve_container(recipe, value)
        if isinstance(container, list):
            yield from _ranked_entries(recipe, container)
    elif shape is FieldShape.NESTED_BY_YEAR:
        yield from _nested_by_year_entries(recipe, resolve_container(recipe, value))
    elif shape is FieldShape.NESTED_BY_ENTITY:
        yield from _nested_by_entity_entries(recipe, resolve_container(recipe, value))
    else:
        yield from _generic_entries(value, entity_name)


def is_entity_named(recipe: ColumnRecipe, entry: CategoryEntry, entity: Entity) -> bool:
    """True when the category *is* the entity (shape (a) and scalar fallbacks)."""
    return recipe.shape in (FieldShape.SCALAR_WITH_YEARS, FieldShape.GENERIC) \
        and entry.name == entity.name


# ── Public extraction API ─────────────────────────────────────────────────────


def entity_entries(field_id: str, entity: Entity,
                   diagnostics: BuffetDiagnostics | None = None) -> list[CategoryEntry] | None:
    """Category entries for one entity, or None if its value is malformed."""
    ok, value = read_field_value(entity, field_id, diagnostics)
    if not ok:
        return None
    return list(iter_entries(get_recipe(field_id), value, entity.name))


def extract_categories(field_id: str, entities: Iterable[Entity],
                       diagnostics: BuffetDiagnostics | None = None) -> list[CategoryAggregate]:
    """Merge category totals for ``field_id`` across all entities.

    Zero and negative contributions are not recorded.  Returns categories in
    first-seen order (unsorted); an empty list means no card for the field.
    """
    recipe = get_recipe(field_id)
    totals: dict[str, float] = {}
    owners: dict[str, str] = {}
    warned: set[str] = set()

    for entity in entities:
        entries = entity_entries(field_id, entity, diagnostics)
        if entries is None:
            continue
        if diagnostics is not None:
            diagnostics.entities_processed += 1
        for entry in entries:
            if not math.isfinite(entry.value):
                logger.warning("Skipping non-finite %s value %r for %r",
                               field_id, entry.value, entity.name)
                if diagnostics is not None:
                    diagnostics.add_skip("error_skip", f"{field_id}: non-finite value",
                                         item=entry.name)
                continue
            if entry.value <= 0:
                continue
            if is_entity_named(recipe, entry, entity):
                owner = owners.setdefault(entry.name, entity.id)
                if owner != entity.id and entry.name not in warned:
                    warned.add(entry.name)
                    logger.warning(
                        "Entities %s and %s share the name %r; their %s values are merged",
                        owner, entity.id, entry.name, field_id,
                    )
                    if diagnostics is not None:
                        diagnostics.add_skip(
                            "name_collision",
                            f"ids {owner} and {entity.id} share one display name",
                            item=entry.name,
                        )
            totals[entry.name] = totals.get(entry.name, 0.0) + entry.value

    if not totals:
        logger.info("No %s categories found", field_id)
    return [CategoryAggregate(name=name, value=value) for name, value in totals.items()]


def extract_entity_totals(field_id: str, entities: Iterable[Entity]) -> list[CategoryAggregate]:
    """Per-entity totals for ``field_id`` (sum of that entity's categories).

    Entities sharing a display name are merged under it.
    """
    totals: dict[str, float] = {}
    for entity in entities:
        entries = entity_entries(field_id, entity)
        if not entries:
            continue
        amount = sum(e.value for e in entries if e.value > 0)
        if amount > 0:
            totals[entity.name] = totals.get(entity.name, 0.0) + amount
    return [CategoryAggregate(name=name, value=value) for name, value in totals.items()]


def extract_entity_category_matrix(field_id: str,
                                   entities: Iterable[Entity]) -> dict[str, dict[str, float]]:
    """Return ``{entity name: {category: value}}`` for stacked breakdowns."""
    matrix: dict[str, dict[str, float]] = {}
    for entity in entities:
        entries = entity_entries(field_id, entity)
        if not entries:
            continue
        row = matrix.setdefault(entity.name, {})
        for entry in entries:
            if entry.value > 0:
                row[entry.name] = row.get(entry.name, 0.0) + entry.value
        if not row:
            del matrix[entity.name]
    return matrix
