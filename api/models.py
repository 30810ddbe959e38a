"""
Pydantic response models for the buffet API.

Card models mirror the camelCase wire form produced by Card.to_dict() so a
response can be validated straight from the engine output.  Optional
fields default to None; cards without a chart (kpi) simply omit it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── Card models ───────────────────────────────────────────────────────────────

class ChartSeriesOut(BaseModel):
    """One data series of a chart descriptor."""
    label: str = Field(..., description="Series label", examples=["Obligations"])
    values: list[float] = Field(..., description="One value per chart label", examples=[[100.0, 50.0]])
    color: str | list[str] = Field(
        ..., description="Single series color or one color per value",
        examples=[["#144673", "#94a3b8"]],
    )


class ChartSpecOut(BaseModel):
    """Declarative chart description consumed by the chart renderer."""
    labels: list[str] = Field(..., description="Category or fiscal-year labels", examples=[["Agency A", "All Other"]])
    series: list[ChartSeriesOut] = Field(..., description="Data series")


class TableSpecOut(BaseModel):
    """Tabular equivalent of a card; always present."""
    headers: list[str] = Field(..., description="Column headers", examples=[["Rank", "Name", "Obligations", "% of Total"]])
    rows: list[list[str | float | int]] = Field(..., description="Formatted table rows")


class CardOut(BaseModel):
    """One self-contained view card."""
    id: str = Field(..., description="Card identifier: {entityType}_{field}_{chartKind}", examples=["agency_obligations_pie"])
    title: str = Field(..., description="Card title including the fiscal-year window", examples=["Obligations - Pie Chart (All Fiscal Years)"])
    cardKind: str = Field(..., description="chart | funnel | kpi | summary", examples=["chart"])
    chartKind: str | None = Field(None, description="Chart kind rendered", examples=["pie"])
    chartSpec: ChartSpecOut | None = Field(None, description="Chart descriptor")
    tableSpec: TableSpecOut = Field(..., description="Table descriptor")
    summary: dict[str, str | float | int] | None = Field(None, description="Summary statistics")
    metadata: dict[str, Any] | None = Field(None, description="generatedBy, entityType, columnId, timestamp")


class BuffetErrorOut(BaseModel):
    """Structured failure reported by the engine."""
    code: str = Field(..., description="Machine-readable error code", examples=["invalid_entity_type"])
    message: str = Field(..., description="Human-readable explanation")


class BuffetResponse(BaseModel):
    """Cards generated for one field across one entity type."""
    success: bool = Field(..., description="False only for caller errors")
    cards: list[CardOut] = Field(default_factory=list, description="Cards in display order")
    availableYears: list[str] = Field(
        default_factory=list,
        description="Fiscal years seen before the year filter, newest first",
        examples=[["2025", "2024", "2023"]],
    )
    fiscalYearFilter: str = Field("all", description="Active fiscal-year window", examples=["2024-2025"])
    error: BuffetErrorOut | None = Field(None, description="Present when success is false")
    diagnostics: dict[str, Any] | None = Field(None, description="Processing and skip summary")


# ── Catalog models ────────────────────────────────────────────────────────────

class ColumnOut(BaseModel):
    """A field identifier the buffet knows how to summarize."""
    field_id: str = Field(..., description="Field identifier", examples=["reseller"])
    display_name: str = Field(..., description="Human-readable column name", examples=["Reseller"])
    shape: str = Field(..., description="Nested data shape", examples=["named_category_map"])
    monetary_label: str = Field(..., description="Obligations or Sales", examples=["Obligations"])
    categorical: bool = Field(..., description="Few fixed categories shared by all entities")
    ranking: bool = Field(..., description="Reference-ID ranking field")
    aliases: list[str] = Field(default_factory=list, description="Legacy identifiers for this field")


class ColumnsResponse(BaseModel):
    """Catalog listing."""
    entity_types: list[str] = Field(..., description="Supported entity types", examples=[["agency", "oem", "vendor"]])
    columns: list[ColumnOut] = Field(..., description="Known fields in display order")


# ── Error models ──────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Bad request"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[400])
