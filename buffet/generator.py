"""
Buffet generator: one field across an entity population -> ordered cards.

Pipeline:
    decode field values -> entity filters -> available years (pre-window)
    -> fiscal-year window -> category extraction + fiscal series
    -> Top-N bucketing -> chart-kind selection -> renderers

Card order:
    1. entity-stacked breakdown (categorical fields, several entities)
    2. entity breakdown bar (fields whose categories are not the entities)
    3. one card per selected chart kind
    4. a fiscal trend card when the selection had none and there are at
       least two fiscal points

An invalid entity type or invalid options produce ``success=False`` with a
structured error.  Anything unexpected inside the pipeline is logged and
returned as an empty card list with the failure in the diagnostics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable

from buffet.catalog import (
    FieldShape,
    get_display_name,
    get_monetary_label,
    get_recipe,
    is_known_field,
)
from buffet.diagnostics import BuffetDiagnostics
from buffet.extractor import (
    decode_field_values,
    extract_categories,
    extract_entity_category_matrix,
    extract_entity_totals,
)
from buffet.filters import apply_entity_filters
from buffet.fiscal import (
    aggregate_fiscal_years,
    apply_year_filter,
    available_fiscal_years,
    parse_year_filter,
    year_filter_label,
)
from buffet.models import Card, Entity, FiscalPoint, ViewOptions
from buffet.renderers import (
    TREND_STYLES,
    RenderContext,
    is_renderable,
    render,
    render_entity_breakdown,
    render_entity_stacked,
    render_kpi,
)
from buffet.selector import select_chart_kinds
from buffet.store import EntityStore
from buffet.topn import TopNResult, select_top_n
from utils.config import BuffetConfig, KnownValues

logger = logging.getLogger(__name__)

KPI_KIND = "kpi"
DEFAULT_TREND_KIND = "fiscalTrend"

# Shapes whose categories are the entities themselves
_ENTITY_NAMED_SHAPES = (FieldShape.SCALAR_WITH_YEARS, FieldShape.GENERIC)


@dataclass
class BuffetResult:
    """Cards for one field plus the context a caller needs to display them."""

    success: bool
    cards: list[Card] = field(default_factory=list)
    available_years: list[str] = field(default_factory=list)
    fiscal_year_filter: str = "all"
    error: dict[str, str] | None = None
    diagnostics: BuffetDiagnostics | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "success": self.success,
            "cards": [c.to_dict() for c in self.cards],
            "availableYears": list(self.available_years),
            "fiscalYearFilter": self.fiscal_year_filter,
        }
        if self.error is not None:
            d["error"] = dict(self.error)
        if self.diagnostics is not None:
            d["diagnostics"] = self.diagnostics.to_dict()
        return d


def _failure(code: str, message: str, diagnostics: BuffetDiagnostics) -> BuffetResult:
    logger.warning("Buffet request rejected (%s): %s", code, message)
    diagnostics.add_error(message)
    diagnostics.finish("failed")
    return BuffetResult(success=False, error={"code": code, "message": message},
                        diagnostics=diagnostics)


def _resolve_options(options: ViewOptions | dict[str, Any] | None) -> ViewOptions:
    if isinstance(options, ViewOptions):
        return options
    return ViewOptions.from_dict(options or {})


def _unique(kinds: list[str]) -> list[str]:
    unique: list[str] = []
    for kind in kinds:
        if kind not in unique:
            unique.append(kind)
    return unique


class _CardCollector:
    """Runs renderers so one failing card never takes the others down."""

    def __init__(self, diagnostics: BuffetDiagnostics) -> None:
        self.cards: list[Card] = []
        self.diagnostics = diagnostics

    def add(self, label: str, fn: Callable[..., Card | None], *args: Any,
            empty_category: str = "render_skip") -> None:
        try:
            card = fn(*args)
        except Exception as exc:
            logger.exception("Renderer %s failed", label)
            self.diagnostics.add_error(f"{label}: {type(exc).__name__}: {exc}")
            return
        if card is None:
            self.diagnostics.add_skip(empty_category, "renderer produced no card", item=label)
            return
        self.cards.append(card)


def _render_cards(entity_type: str, field_id: str, view: ViewOptions,
                  scoped: list[Entity], top: TopNResult, series: list[FiscalPoint],
                  ctx: RenderContext, diagnostics: BuffetDiagnostics) -> list[Card]:
    recipe = get_recipe(field_id)
    collector = _CardCollector(diagnostics)
    entity_ctx = replace(ctx, abbreviate_labels=entity_type == "agency")
    entity_totals = extract_entity_totals(field_id, scoped)

    if recipe.shape not in _ENTITY_NAMED_SHAPES and len(entity_totals) > 1:
        entity_top = select_top_n(entity_totals, view.display_count,
                                  view.include_overflow_bucket, view.percentage_base)
        if recipe.categorical:
            matrix = extract_entity_category_matrix(field_id, scoped)
            collector.add("entityStacked", render_entity_stacked, matrix,
                          [item.name for item in entity_top.ranked], entity_ctx)
        collector.add("entityBreakdown", render_entity_breakdown, entity_top, entity_ctx)

    if view.chart_kinds:
        kinds = _unique(view.chart_kinds)
    else:
        kinds = _unique(select_chart_kinds(entity_type, field_id, view.display_count,
                                           len(top.ranked)))
        if len(series) >= 2 and not any(k in TREND_STYLES for k in kinds):
            kinds.append(DEFAULT_TREND_KIND)
    diagnostics.metrics["chart_kinds"] = kinds

    for kind in kinds:
        if kind == KPI_KIND:
            collector.add(kind, render_kpi, top, series, len(entity_totals), ctx)
        elif not is_renderable(kind):
            logger.warning("Unknown chart kind %r requested for %s", kind, field_id)
            diagnostics.add_skip("render_skip", "unknown chart kind", item=kind)
        elif kind in TREND_STYLES:
            collector.add(kind, render, kind, ctx, top, series,
                          empty_category="insufficient_data")
        else:
            collector.add(kind, render, kind, ctx, top, series)
    return collector.cards


def _run_pipeline(entity_type: str, field_id: str, entities: list[Entity],
                  view: ViewOptions, diagnostics: BuffetDiagnostics,
                  result: BuffetResult) -> None:
    if not is_known_field(field_id):
        logger.info("Field %r is not in the catalog; using the generic recipe", field_id)
    decoded = decode_field_values(field_id, entities, diagnostics)
    filtered = apply_entity_filters(decoded, view)
    result.available_years = available_fiscal_years(field_id, filtered)

    years = parse_year_filter(view.year_filter)
    scoped = apply_year_filter(filtered, field_id, years) if years else filtered

    categories = extract_categories(field_id, scoped, diagnostics)
    series = aggregate_fiscal_years(field_id, filtered, years)
    diagnostics.metrics["categories"] = len(categories)
    diagnostics.metrics["fiscal_points"] = len(series)
    if not categories:
        diagnostics.add_skip("insufficient_data", "no categories after extraction",
                             item=field_id)
        return

    top = select_top_n(categories, view.display_count,
                       view.include_overflow_bucket, view.percentage_base)
    recipe = get_recipe(field_id)
    ctx = RenderContext(
        entity_type=entity_type,
        field_id=field_id,
        display_name=get_display_name(field_id),
        monetary_label=get_monetary_label(field_id),
        year_label=year_filter_label(years),
        entity_label=KnownValues.get_entity_type_name(entity_type),
        abbreviate_labels=entity_type == "agency" and recipe.shape in _ENTITY_NAMED_SHAPES,
        generated_by=BuffetConfig().generated_by,
        timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
    )
    result.cards = _render_cards(entity_type, field_id, view, scoped, top, series,
                                 ctx, diagnostics)


def generate_buffet(entity_type: str, field_id: str, entities: list[Entity],
                    options: ViewOptions | dict[str, Any] | None) -> BuffetResult:
    """Generate every card for ``field_id`` across ``entities``.

    Args:
        entity_type: "agency", "oem" or "vendor".
        field_id: Field identifier; unknown fields use the generic recipe.
        entities: Entities of ``entity_type`` (never modified).
        options: ViewOptions, or a camelCase/snake_case mapping that must
            include the percentage base.

    Returns:
        BuffetResult.  ``available_years`` lists every fiscal year seen
        before the year filter, newest first.

    Examples:
        generate_buffet("agency", "obligations", entities,
                        {"percentageBase": "displayed", "displayCount": 1})
    """
    diagnostics = BuffetDiagnostics(entity_type=entity_type, field_id=field_id)
    if not KnownValues.is_valid_entity_type(entity_type):
        return _failure(
            "invalid_entity_type",
            f"Unknown entity type {entity_type!r}; expected one of "
            f"{sorted(KnownValues.ENTITY_TYPES)}",
            diagnostics,
        )
    try:
        view = _resolve_options(options)
    except ValueError as exc:
        return _failure("invalid_options", str(exc), diagnostics)

    entities = list(entities)
    diagnostics.entities_in = len(entities)
    result = BuffetResult(success=True, fiscal_year_filter=str(view.year_filter or "all"),
                          diagnostics=diagnostics)
    try:
        _run_pipeline(entity_type, field_id, entities, view, diagnostics, result)
    except Exception as exc:
        logger.exception("Buffet generation failed for %s/%s", entity_type, field_id)
        diagnostics.add_error(f"{type(exc).__name__}: {exc}")
        result.cards = []
        diagnostics.cards_generated = 0
        diagnostics.finish("failed")
        return result

    diagnostics.cards_generated = len(result.cards)
    diagnostics.finish()
    logger.info("Buffet %s/%s: %s", entity_type, field_id, diagnostics.console_summary())
    return result


def generate_from_store(store: EntityStore, entity_type: str, field_id: str,
                        options: ViewOptions | dict[str, Any] | None) -> BuffetResult:
    """Fetch ``entity_type`` entities from ``store`` and generate the buffet."""
    if not KnownValues.is_valid_entity_type(entity_type):
        return generate_buffet(entity_type, field_id, [], options)
    return generate_buffet(entity_type, field_id, store.get_entities(entity_type), options)
