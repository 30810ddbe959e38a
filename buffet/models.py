"""
Core data model for the chart buffet.

Entities arrive from an EntityStore and are never mutated here; the year
filter builds derived copies.  Category aggregates, fiscal points and cards
are created fresh per call.  Cards serialize to the camelCase wire form
consumed by the chart renderer and the export collaborators.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from utils.config import BuffetConfig, KnownValues
from utils.patterns import YEAR_RANGE

logger = logging.getLogger(__name__)

PERCENTAGE_BASES = frozenset({"total", "displayed"})

# Keys on a raw record that describe the entity rather than hold field data
_RESERVED_KEYS = frozenset({"id", "uid", "name", "type", "entity_type", "attributes"})
_ATTRIBUTE_KEYS = frozenset({"cfoActAgency", "department", "oneGovStatus"})


# ── Entities ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Entity:
    """One business record (agency, OEM or vendor) with its nested fields."""

    id: str
    name: str
    entity_type: str
    fields: dict[str, Any] = field(default_factory=dict)
    attributes: dict[str, Any] = field(default_factory=dict)

    def get_field(self, field_id: str) -> Any:
        return self.fields.get(field_id)

    @classmethod
    def from_dict(cls, record: dict[str, Any], entity_type: str | None = None) -> "Entity":
        """Build an Entity from a raw store record.

        Field values are every key that is not an identity or attribute key.
        Records without ``id``/``uid`` get an id derived from their name and
        a data-quality warning.
        """
        etype = entity_type or record.get("entity_type") or record.get("type") or ""
        name = str(record.get("name") or "")
        raw_id = record.get("id", record.get("uid"))
        if raw_id is None or raw_id == "":
            logger.warning("Entity %r (%s) has no stable id; deriving one from its name",
                           name, etype)
            raw_id = f"{etype}:{name}"

        attributes = dict(record.get("attributes") or {})
        fields: dict[str, Any] = {}
        for key, value in record.items():
            if key in _RESERVED_KEYS:
                continue
            if key in _ATTRIBUTE_KEYS:
                attributes[key] = value
            else:
                fields[key] = value
        return cls(id=str(raw_id), name=name, entity_type=etype,
                   fields=fields, attributes=attributes)


# ── Aggregates ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CategoryAggregate:
    """Normalized ``{name, value}`` unit produced by extraction."""

    name: str
    value: float
    is_overflow_bucket: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name, "value": self.value}
        if self.is_overflow_bucket:
            d["isOverflowBucket"] = True
        return d


class FiscalPoint(NamedTuple):
    """One ``(year, total)`` pair of a fiscal series."""

    year: str
    total: float


# ── View options ──────────────────────────────────────────────────────────────


def _normalize_display_count(value: Any) -> int | str:
    if isinstance(value, str):
        if value.strip().lower() == "all":
            return "all"
        if not value.strip().isdigit():
            raise ValueError(f"display_count must be a positive integer or 'all', got {value!r}")
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"display_count must be a positive integer or 'all', got {value!r}")
    return value


def _normalize_flag(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"{name} must be true or false, got {value!r}")


@dataclass
class ViewOptions:
    """Options threaded through filtering, bucketing and rendering.

    ``percentage_base`` has no default: every caller states whether
    percentages are relative to the full population or the displayed set.
    """

    percentage_base: str
    display_count: int | str = 10
    selected_entity_names: list[str] | None = None
    include_overflow_bucket: bool = True
    department_filter: str = "all"
    classification_filter: str = "all"
    year_filter: str | None = "all"
    chart_kinds: list[str] | None = None

    def __post_init__(self) -> None:
        if self.percentage_base not in PERCENTAGE_BASES:
            raise ValueError(
                f"percentage_base must be one of {sorted(PERCENTAGE_BASES)}, "
                f"got {self.percentage_base!r}"
            )
        self.display_count = _normalize_display_count(self.display_count)
        self.include_overflow_bucket = _normalize_flag(self.include_overflow_bucket,
                                                       "include_overflow_bucket")
        if self.department_filter not in KnownValues.DEPARTMENT_FILTERS:
            raise ValueError(
                f"department_filter must be one of {sorted(KnownValues.DEPARTMENT_FILTERS)}"
            )
        if self.classification_filter not in KnownValues.CLASSIFICATION_FILTERS:
            raise ValueError(
                f"classification_filter must be one of "
                f"{sorted(KnownValues.CLASSIFICATION_FILTERS)}"
            )
        if self.year_filter not in (None, "", "all"):
            year_filter = str(self.year_filter)
            if not YEAR_RANGE.match(year_filter):
                raise ValueError(
                    f"year_filter must be a year, an inclusive range like "
                    f"'2023-2025', or 'all', got {self.year_filter!r}"
                )
            self.year_filter = year_filter

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewOptions":
        """Build options from a camelCase or snake_case mapping.

        Unset options fall back to BuffetConfig defaults.  ``percentageBase``
        must be present.

        Raises:
            ValueError: On a missing percentage base or any invalid value.
        """
        defaults = BuffetConfig()

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        base = pick("percentage_base", "percentageBase")
        if base is None:
            raise ValueError("percentage_base is required ('total' or 'displayed')")
        names = pick("selected_entity_names", "selectedEntityNames", "selectedEntities")
        kinds = pick("chart_kinds", "chartKinds")
        return cls(
            percentage_base=base,
            display_count=pick("display_count", "displayCount",
                               default=defaults.display_count),
            selected_entity_names=list(names) if names else None,
            include_overflow_bucket=pick("include_overflow_bucket", "includeOverflowBucket",
                                         default=defaults.include_overflow_bucket),
            department_filter=pick("department_filter", "departmentFilter", "deptFilter",
                                   default=defaults.department_filter),
            classification_filter=pick("classification_filter", "classificationFilter",
                                       "tierFilter", default=defaults.classification_filter),
            year_filter=pick("year_filter", "yearFilter", "fiscalYearFilter",
                             default=defaults.year_filter),
            chart_kinds=list(kinds) if kinds else None,
        )


# ── Cards ─────────────────────────────────────────────────────────────────────


@dataclass
class ChartSeries:
    label: str
    values: list[float]
    color: str | list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "values": list(self.values), "color": self.color}


@dataclass
class ChartSpec:
    labels: list[str]
    series: list[ChartSeries]

    def to_dict(self) -> dict[str, Any]:
        return {"labels": list(self.labels), "series": [s.to_dict() for s in self.series]}


@dataclass
class TableSpec:
    headers: list[str]
    rows: list[list[str | float | int]]

    def to_dict(self) -> dict[str, Any]:
        return {"headers": list(self.headers), "rows": [list(r) for r in self.rows]}


@dataclass
class Card:
    """Self-contained output unit pairing a chart description with a table."""

    id: str
    title: str
    card_kind: str                       # chart | funnel | kpi | summary
    table_spec: TableSpec
    chart_kind: str | None = None
    chart_spec: ChartSpec | None = None
    summary: dict[str, str | float | int] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "cardKind": self.card_kind,
            "tableSpec": self.table_spec.to_dict(),
        }
        if self.chart_kind is not None:
            d["chartKind"] = self.chart_kind
        if self.chart_spec is not None:
            d["chartSpec"] = self.chart_spec.to_dict()
        if self.summary is not None:
            d["summary"] = dict(self.summary)
        if self.metadata:
            d["metadata"] = dict(self.metadata)
        return d
