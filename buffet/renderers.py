"""
View Renderers

Two parameterized renderer families turn bucketed categories or fiscal
series into Cards:

    distribution  verticalBar, horizontalBar, pie, doughnut, funnel,
                  line, area, stackedBar (category list in, one card out)
    trend         fiscalTrend, fiscalArea, fiscalBar (fiscal series in)

plus the entity breakdown, entity-stacked breakdown and KPI summary cards
the buffet adds around them.

Renderers are pure: identical inputs and RenderContext produce identical
cards.  Empty inputs (and trend series under two points) return None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from buffet.colors import (
    OVERFLOW_COLOR,
    get_chart_color,
    get_fiscal_year_color,
)
from buffet.fiscal import compute_yoy_changes
from buffet.models import Card, ChartSeries, ChartSpec, FiscalPoint, TableSpec
from buffet.topn import OVERFLOW_LABEL, BucketedCategory, TopNResult
from utils.formatting import (
    format_currency_short,
    format_percent,
    format_signed_percent,
    format_table_currency,
)
from utils.strings import abbreviate_agency_name

PRIMARY_COLOR = "#144673"
MIN_TREND_POINTS = 2


@dataclass(frozen=True)
class RenderContext:
    """Display metadata shared by every card of one buffet."""

    entity_type: str
    field_id: str
    display_name: str
    monetary_label: str
    year_label: str
    entity_label: str = ""
    abbreviate_labels: bool = False
    generated_by: str = "chartBuffet"
    timestamp: str = ""

    def card_id(self, chart_kind: str) -> str:
        return f"{self.entity_type}_{self.field_id}_{chart_kind}"

    def title(self, what: str) -> str:
        return f"{self.display_name} - {what} ({self.year_label})"

    def label(self, name: str) -> str:
        return abbreviate_agency_name(name) if self.abbreviate_labels else name

    def metadata(self, chart_kind: str) -> dict[str, Any]:
        return {
            "generatedBy": self.generated_by,
            "entityType": self.entity_type,
            "columnId": self.field_id,
            "chartKind": chart_kind,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class DistributionStyle:
    label: str
    orientation: str = "vertical"     # vertical | horizontal
    circular: bool = False            # pie, doughnut
    connected: bool = False           # line, area
    fill: bool = False                # area
    stacked: bool = False
    funnel: bool = False

    @property
    def card_kind(self) -> str:
        return "funnel" if self.funnel else "chart"


@dataclass(frozen=True)
class TrendStyle:
    label: str
    mode: str                         # line | area | bar


DISTRIBUTION_STYLES: dict[str, DistributionStyle] = {
    "verticalBar": DistributionStyle("Vertical Bar Chart"),
    "horizontalBar": DistributionStyle("Horizontal Bar Chart", orientation="horizontal"),
    "pie": DistributionStyle("Pie Chart", circular=True),
    "doughnut": DistributionStyle("Doughnut Chart", circular=True),
    "line": DistributionStyle("Line Chart", connected=True),
    "area": DistributionStyle("Area Chart", connected=True, fill=True),
    "stackedBar": DistributionStyle("Stacked Bar Chart", stacked=True),
    "funnel": DistributionStyle("Funnel", orientation="horizontal", funnel=True),
}

TREND_STYLES: dict[str, TrendStyle] = {
    "fiscalTrend": TrendStyle("Fiscal Year Trend", "line"),
    "fiscalArea": TrendStyle("Fiscal Year Area Trend", "area"),
    "fiscalBar": TrendStyle("Fiscal Year Comparison", "bar"),
}

_ENTITY_BREAKDOWN = DistributionStyle("", orientation="horizontal")

Renderer = Callable[[RenderContext, Optional[TopNResult], Optional[list[FiscalPoint]]], Optional[Card]]


def _display_label(item: BucketedCategory, ctx: RenderContext) -> str:
    return OVERFLOW_LABEL if item.is_overflow_bucket else ctx.label(item.name)


def _item_colors(items: list[BucketedCategory], ctx: RenderContext) -> list[str]:
    return [get_chart_color(item.name, i, ctx.field_id, item.is_overflow_bucket)
            for i, item in enumerate(items)]


def _percent_header(result: TopNResult) -> str:
    return "% of Total" if result.percentage_base == "total" else "% of Displayed"


def _ranking_table(result: TopNResult, ctx: RenderContext, name_header: str = "Name") -> TableSpec:
    rows: list[list[str | float | int]] = []
    for item in result.items:
        rows.append([
            "N/A" if item.is_overflow_bucket else item.rank,
            _display_label(item, ctx),
            format_table_currency(item.value),
            format_percent(item.percentage),
        ])
    return TableSpec(
        headers=["Rank", name_header, ctx.monetary_label, _percent_header(result)],
        rows=rows,
    )


def _funnel_table(result: TopNResult, ctx: RenderContext) -> TableSpec:
    ranked = result.ranked
    top_value = ranked[0].value if ranked else 0.0
    rows: list[list[str | float | int]] = []
    previous: float | None = None
    for item in result.items:
        relative = format_percent(item.value / top_value * 100) if top_value else "-"
        if item.is_overflow_bucket or previous is None or not previous:
            drop_off = "-"
        else:
            drop_off = format_percent((previous - item.value) / previous * 100)
        rows.append([
            "N/A" if item.is_overflow_bucket else item.rank,
            _display_label(item, ctx),
            format_table_currency(item.value),
            relative,
            drop_off,
        ])
        if not item.is_overflow_bucket:
            previous = item.value
    return TableSpec(
        headers=["Stage", "Name", ctx.monetary_label, "Relative %", "Drop-off %"],
        rows=rows,
    )


def _distribution_summary(result: TopNResult) -> dict[str, str | float | int]:
    ranked = result.ranked
    summary: dict[str, str | float | int] = {
        "total": round(result.total_all, 2),
        "totalFormatted": format_currency_short(result.total_all),
        "displayedTotal": round(result.total_displayed, 2),
        "categoryCount": result.category_count,
        "displayedCount": len(ranked),
        "percentageBase": result.percentage_base,
    }
    if ranked:
        summary["topCategory"] = ranked[0].name
        summary["topShare"] = format_percent(ranked[0].percentage)
    overflow = result.overflow
    if overflow is not None:
        summary["allOtherValue"] = round(overflow.value, 2)
        summary["allOtherCount"] = overflow.folded_count
    return summary


def _distribution_chart(style: DistributionStyle, items: list[BucketedCategory],
                        ctx: RenderContext) -> ChartSpec:
    labels = [_display_label(item, ctx) for item in items]
    values = [round(item.value, 2) for item in items]
    colors = _item_colors(items, ctx)

    if style.stacked:
        series = [ChartSeries(label, [value], color)
                  for label, value, color in zip(labels, values, colors)]
        return ChartSpec(labels=[ctx.display_name], series=series)
    if style.connected:
        return ChartSpec(labels=labels,
                         series=[ChartSeries(ctx.monetary_label, values, PRIMARY_COLOR)])
    return ChartSpec(labels=labels, series=[ChartSeries(ctx.monetary_label, values, colors)])


def render_distribution(chart_kind: str, result: TopNResult | None,
                        ctx: RenderContext) -> Card | None:
    """Render one categorical-distribution card."""
    if result is None or not result.items:
        return None
    style = DISTRIBUTION_STYLES[chart_kind]
    table = _funnel_table(result, ctx) if style.funnel else _ranking_table(result, ctx)
    return Card(
        id=ctx.card_id(chart_kind),
        title=ctx.title(style.label),
        card_kind=style.card_kind,
        chart_kind=chart_kind,
        chart_spec=_distribution_chart(style, result.items, ctx),
        table_spec=table,
        summary=_distribution_summary(result),
        metadata=ctx.metadata(chart_kind),
    )


# ── Trend family ──────────────────────────────────────────────────────────────


def _trend_summary(series: list[FiscalPoint]) -> dict[str, str | float | int]:
    changes = compute_yoy_changes(series)
    first, last = series[0], series[-1]
    total_growth = (last.total - first.total) / first.total * 100 if first.total else 0.0
    average_growth = sum(c.percent for c in changes) / len(changes)
    highest = max(series, key=lambda p: p.total)
    lowest = min(series, key=lambda p: p.total)
    best = max(changes, key=lambda c: c.percent)
    return {
        "total": round(sum(p.total for p in series), 2),
        "totalFormatted": format_currency_short(sum(p.total for p in series)),
        "totalGrowth": format_signed_percent(total_growth),
        "averageGrowth": format_signed_percent(average_growth),
        "yearsTracked": len(series),
        "highestYear": f"FY{highest.year}",
        "lowestYear": f"FY{lowest.year}",
        "bestGrowthYear": f"FY{best.year}",
    }


def render_fiscal_trend(chart_kind: str, series: list[FiscalPoint] | None,
                        ctx: RenderContext) -> Card | None:
    """Render one fiscal-trend card; None when fewer than two points exist."""
    if not series or len(series) < MIN_TREND_POINTS:
        return None
    style = TREND_STYLES[chart_kind]
    labels = [f"FY{p.year}" for p in series]
    values = [round(p.total, 2) for p in series]
    if style.mode == "bar":
        color: str | list[str] = [get_fiscal_year_color(p.year) for p in series]
    else:
        color = PRIMARY_COLOR

    changes = {c.year: c for c in compute_yoy_changes(series)}
    rows: list[list[str | float | int]] = []
    for point in series:
        change = changes.get(point.year)
        if change is None:
            rows.append([f"FY{point.year}", format_table_currency(point.total), "-", "-"])
            continue
        sign = "-" if change.change < 0 else "+"
        rows.append([
            f"FY{point.year}",
            format_table_currency(point.total),
            sign + format_table_currency(abs(change.change)),
            format_signed_percent(change.percent),
        ])

    return Card(
        id=ctx.card_id(chart_kind),
        title=ctx.title(style.label),
        card_kind="chart",
        chart_kind=chart_kind,
        chart_spec=ChartSpec(labels=labels,
                             series=[ChartSeries(ctx.monetary_label, values, color)]),
        table_spec=TableSpec(
            headers=["Fiscal Year", ctx.monetary_label, "YoY Change", "YoY %"],
            rows=rows,
        ),
        summary=_trend_summary(series),
        metadata=ctx.metadata(chart_kind),
    )


# ── Buffet extras ─────────────────────────────────────────────────────────────


def render_entity_breakdown(result: TopNResult | None, ctx: RenderContext) -> Card | None:
    """Horizontal bar of each entity's total for the field."""
    if result is None or not result.items:
        return None
    chart_kind = "entityBreakdown"
    return Card(
        id=ctx.card_id(chart_kind),
        title=ctx.title(f"By {ctx.entity_label or 'Entity'}"),
        card_kind="chart",
        chart_kind=chart_kind,
        chart_spec=_distribution_chart(_ENTITY_BREAKDOWN, result.items, ctx),
        table_spec=_ranking_table(result, ctx, name_header=ctx.entity_label or "Name"),
        summary=_distribution_summary(result),
        metadata=ctx.metadata(chart_kind),
    )


def render_entity_stacked(matrix: dict[str, dict[str, float]], entity_names: list[str],
                          ctx: RenderContext, max_categories: int = 10) -> Card | None:
    """Stacked bars: one bar per entity, one segment per category.

    Categories beyond ``max_categories`` (by combined value) share one
    muted "All Other" segment.
    """
    rows_by_entity = [(name, matrix[name]) for name in entity_names if matrix.get(name)]
    if not rows_by_entity:
        return None

    combined: dict[str, float] = {}
    for _, row in rows_by_entity:
        for category, value in row.items():
            combined[category] = combined.get(category, 0.0) + value
    ordered = sorted(combined, key=lambda c: -combined[c])
    shown, folded = ordered[:max_categories], ordered[max_categories:]

    series = [
        ChartSeries(category,
                    [round(row.get(category, 0.0), 2) for _, row in rows_by_entity],
                    get_chart_color(category, i, ctx.field_id))
        for i, category in enumerate(shown)
    ]
    if folded:
        series.append(ChartSeries(
            OVERFLOW_LABEL,
            [round(sum(row.get(c, 0.0) for c in folded), 2) for _, row in rows_by_entity],
            OVERFLOW_COLOR,
        ))

    headers = [ctx.entity_label or "Name"] + shown + ([OVERFLOW_LABEL] if folded else []) + ["Total"]
    table_rows: list[list[str | float | int]] = []
    for name, row in rows_by_entity:
        cells: list[str | float | int] = [ctx.label(name)]
        cells += [format_table_currency(row.get(c, 0.0)) for c in shown]
        if folded:
            cells.append(format_table_currency(sum(row.get(c, 0.0) for c in folded)))
        cells.append(format_table_currency(sum(row.values())))
        table_rows.append(cells)

    chart_kind = "entityStacked"
    return Card(
        id=ctx.card_id(chart_kind),
        title=ctx.title(f"Mix by {ctx.entity_label or 'Entity'}"),
        card_kind="chart",
        chart_kind=chart_kind,
        chart_spec=ChartSpec(labels=[ctx.label(n) for n, _ in rows_by_entity], series=series),
        table_spec=TableSpec(headers=headers, rows=table_rows),
        summary={
            "entityCount": len(rows_by_entity),
            "categoryCount": len(ordered),
            "total": round(sum(combined.values()), 2),
        },
        metadata=ctx.metadata(chart_kind),
    )


def render_kpi(result: TopNResult | None, series: list[FiscalPoint],
               entity_count: int, ctx: RenderContext) -> Card | None:
    """Headline numbers for the field: total, counts, leader and year span."""
    if result is None or not result.items:
        return None
    ranked = result.ranked
    top = ranked[0] if ranked else None
    metrics: list[tuple[str, str | int]] = [
        (f"Total {ctx.monetary_label}", format_currency_short(result.total_all)),
        (f"{ctx.entity_label} Count" if ctx.entity_label else "Entities", entity_count),
        ("Categories", result.category_count),
    ]
    if top is not None:
        metrics.append(("Top Category", ctx.label(top.name)))
        metrics.append(("Top Category Share",
                        format_percent(top.value / result.total_all * 100
                                       if result.total_all else 0.0)))
    if series:
        metrics.append(("Fiscal Years", f"FY{series[0].year}-FY{series[-1].year}"
                        if len(series) > 1 else f"FY{series[0].year}"))

    chart_kind = "kpi"
    summary: dict[str, str | float | int] = {
        "total": round(result.total_all, 2),
        "entityCount": entity_count,
        "categoryCount": result.category_count,
    }
    if top is not None:
        summary["topCategory"] = top.name
    return Card(
        id=ctx.card_id(chart_kind),
        title=ctx.title("Summary"),
        card_kind="kpi",
        table_spec=TableSpec(headers=["Metric", "Value"],
                             rows=[[k, v] for k, v in metrics]),
        summary=summary,
        metadata=ctx.metadata(chart_kind),
    )


def _distribution_renderer(chart_kind: str) -> Renderer:
    def renderer(ctx: RenderContext, top: TopNResult | None,
                 series: list[FiscalPoint] | None) -> Card | None:
        return render_distribution(chart_kind, top, ctx)
    return renderer


def _trend_renderer(chart_kind: str) -> Renderer:
    def renderer(ctx: RenderContext, top: TopNResult | None,
                 series: list[FiscalPoint] | None) -> Card | None:
        return render_fiscal_trend(chart_kind, series, ctx)
    return renderer


RENDERERS: dict[str, Renderer] = {
    **{kind: _distribution_renderer(kind) for kind in DISTRIBUTION_STYLES},
    **{kind: _trend_renderer(kind) for kind in TREND_STYLES},
}


def render(chart_kind: str, ctx: RenderContext, top: TopNResult | None = None,
           series: list[FiscalPoint] | None = None) -> Card | None:
    """Dispatch ``chart_kind`` to its registered renderer.

    Raises:
        ValueError: If ``chart_kind`` has no renderer.
    """
    renderer = RENDERERS.get(chart_kind)
    if renderer is None:
        raise ValueError(f"No renderer for chart kind {chart_kind!r}")
    return renderer(ctx, top, series)


def is_renderable(chart_kind: str) -> bool:
    return chart_kind in RENDERERS
