"""
Chart color system.

Fixed colors for well-known categories (business size, SUM tiers, quarters,
discount ranges, departments, contract vehicles, fiscal years) and a
fifteen-color entity palette for everything else.  The overflow bucket
always gets OVERFLOW_COLOR so it never reads as a real category.
"""

from __future__ import annotations

ENTITY_PALETTE = (
    "#144673", "#f47920", "#3a6ea5", "#22c55e", "#ef4444",
    "#fbbf24", "#a855f7", "#ec4899", "#14b8a6", "#6366f1",
    "#84cc16", "#06b6d4", "#8b5cf6", "#f59e0b", "#78716c",
)

OVERFLOW_COLOR = "#94a3b8"
NEUTRAL_COLOR = "#e5e7eb"

CATEGORY_COLORS = {
    # Small business
    "SMALL BUSINESS": "#f47920",
    "OTHER THAN SMALL BUSINESS": "#144673",
    "Not Specified": "#e5e7eb",
    # SUM tiers
    "BIC": "#22c55e",
    "TIER 0": "#06b6d4",
    "TIER 1": "#144673",
    "TIER 2": "#f47920",
    "TIER 3": "#ef4444",
    "TIER 4": "#a855f7",
    "TIER 5": "#6b7280",
    # SUM types
    "Governmentwide": "#144673",
    "Governmentwide Management": "#144673",
    "Agency Managed": "#3a6ea5",
    "Open Market": "#f47920",
    # Quarters
    "Q1": "#dbeafe",
    "Q2": "#bfdbfe",
    "Q3": "#93c5fd",
    "Q4": "#60a5fa",
    # Discount ranges
    "0-10%": "#fecaca",
    "10-20%": "#fed7aa",
    "20-30%": "#fef3c7",
    "30-40%": "#bbf7d0",
    "40-50%": "#86efac",
    "50%+": "#22c55e",
    # OneGov / CFO Act
    "OneGov": "#22c55e",
    "Non-OneGov": "#ef4444",
    "CFO Act": "#144673",
    "Non-CFO Act": "#6b7280",
}

DEPARTMENT_COLORS = {
    "DEFENSE": "#1e3a8a",
    "VA": "#dc2626",
    "HHS": "#059669",
    "STATE": "#7c3aed",
    "TREASURY": "#15803d",
    "DHS": "#1e40af",
    "ENERGY": "#fbbf24",
    "GSA": "#144673",
}

CONTRACT_VEHICLE_COLORS = {
    "GSA Schedules": "#144673",
    "SEWP": "#3a6ea5",
    "CIO-SP3": "#22c55e",
    "FirstSource": "#f47920",
    "STARS": "#8b5cf6",
}

FISCAL_YEAR_COLORS = {
    "2022": "#cbd5e1",
    "2023": "#94a3b8",
    "2024": "#475569",
    "2025": "#1e293b",
    "2026": "#0f172a",
}

# Fields whose categories always use CATEGORY_COLORS (unknown -> neutral)
_FIXED_CATEGORY_FIELDS = frozenset({"smallBusiness", "sumTier", "sumType"})


def get_fiscal_year_color(year: str | int) -> str:
    """Fixed color for known years, a darkening blue gradient otherwise."""
    key = str(year)
    if key in FISCAL_YEAR_COLORS:
        return FISCAL_YEAR_COLORS[key]
    try:
        offset = int(key) - 2022
    except ValueError:
        return OVERFLOW_COLOR
    lightness = max(20, 70 - offset * 10)
    return f"hsl(214, 40%, {lightness}%)"


def get_chart_color(label: str, index: int, field_id: str = "",
                    is_overflow: bool = False) -> str:
    """Color for one category label at position ``index``."""
    if is_overflow:
        return OVERFLOW_COLOR
    if field_id in _FIXED_CATEGORY_FIELDS:
        return CATEGORY_COLORS.get(label, NEUTRAL_COLOR)
    if field_id == "fundingDepartment" and label in DEPARTMENT_COLORS:
        return DEPARTMENT_COLORS[label]
    if field_id == "contractVehicle" and label in CONTRACT_VEHICLE_COLORS:
        return CONTRACT_VEHICLE_COLORS[label]
    for table in (CATEGORY_COLORS, DEPARTMENT_COLORS, CONTRACT_VEHICLE_COLORS,
                  FISCAL_YEAR_COLORS):
        if label in table:
            return table[label]
    return ENTITY_PALETTE[index % len(ENTITY_PALETTE)]
