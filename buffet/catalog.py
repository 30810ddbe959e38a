"""
Column Schema Catalog

Single source of truth for how each entity field is laid out: which nested
shape it uses and which keys hold category names, values and fiscal-year
breakdowns.  The catalog is pure data.  Adding a field means adding a row
to COLUMN_CATALOG; the extractor and fiscal aggregator read recipes and
never branch on field identifiers.

Shapes:
    SCALAR_WITH_YEARS   {total_obligated, fiscal_year_obligations: {year: v}}
    NAMED_CATEGORY_MAP  {<path>: {name: {total, fiscal_years: {year: v}}}}
    RANKED_ARRAY        {<path>: [{<name_key>, <value_key>, <year_key>?}]}
    NESTED_BY_YEAR      {<path>: {year: {total_obligations, <inner>: [items]}}}
    NESTED_BY_ENTITY    {<path>: {outer: {agency_total, <inner>: [items]}}}
    GENERIC             fallback for unknown field identifiers
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FieldShape(str, Enum):
    SCALAR_WITH_YEARS = "scalar_with_years"
    NAMED_CATEGORY_MAP = "named_category_map"
    RANKED_ARRAY = "ranked_array"
    NESTED_BY_YEAR = "nested_by_year"
    NESTED_BY_ENTITY = "nested_by_entity"
    GENERIC = "generic"


# Candidate keys for year maps, tried in order (first present wins)
FISCAL_KEYS = (
    "fiscal_year_obligations",
    "fiscal_years",
    "yearly_totals",
    "fiscal_year_breakdown",
    "years",
)

# Candidate keys for a scalar total inside a category/item object
TOTAL_KEYS = (
    "total",
    "total_obligations",
    "total_obligated",
    "total_sales",
    "obligations",
    "value",
)

# When a year map holds objects ({"2024": {"obligations": 5}}) the amount
# is read from the first of these keys
YEAR_VALUE_KEYS = ("obligations", "total", "total_obligations", "total_sales", "value")


@dataclass(frozen=True)
class ColumnRecipe:
    """Extraction recipe for one field identifier."""

    shape: FieldShape
    display_name: str
    path: tuple[str, ...] = ()              # container keys; empty = field root
    name_keys: tuple[str, ...] = ("name",)
    value_keys: tuple[str, ...] = TOTAL_KEYS
    year_keys: tuple[str, ...] = FISCAL_KEYS
    total_keys: tuple[str, ...] = ("total_obligated", "total")   # shape (a) only
    inner_keys: tuple[str, ...] = ()        # shapes (d)/(e) inner collections
    outer_total_keys: tuple[str, ...] = ("total_obligations", "agency_total", "total")
    monetary_label: str = "Obligations"
    ranking: bool = False                   # reference-ID style ranking field
    categorical: bool = False               # few fixed categories shared by all entities


_SALES = "Sales"

COLUMN_CATALOG: dict[str, ColumnRecipe] = {
    # Column D
    "obligations": ColumnRecipe(
        FieldShape.SCALAR_WITH_YEARS, "Obligations",
    ),
    # Columns E-H: categorical summaries shared by every entity
    "smallBusiness": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Small Business",
        path=("business_size_summaries",), categorical=True,
    ),
    "sumTier": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "SUM Tier",
        path=("tier_summaries",), categorical=True,
    ),
    "sumType": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "SUM Type",
        path=("sum_type_summaries",), categorical=True,
    ),
    "contractVehicle": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Contract Vehicle",
        path=("top_contract_summaries",), categorical=True,
    ),
    "fundingDepartment": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Funding Department",
        path=("top_10_department_summaries",), categorical=True,
    ),
    "fundingAgency": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Funding Agency",
        path=("top_10_agency_summaries",),
    ),
    "discount": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Discount",
        path=("discount_categories", "discount_ranges"), categorical=True,
    ),
    # Columns K, L: ranked reference IDs
    "topRefPiid": ColumnRecipe(
        FieldShape.RANKED_ARRAY, "Top Referenced PIID",
        path=("top_10_reference_piids",),
        name_keys=("reference_piid",),
        value_keys=("dollars_obligated", "total_obligations"),
        year_keys=("fiscal_year_breakdown", "fiscal_years"),
        ranking=True,
    ),
    "topPiid": ColumnRecipe(
        FieldShape.RANKED_ARRAY, "Top PIID",
        path=("top_10_piids",),
        name_keys=("piid",),
        value_keys=("dollars_obligated", "total_obligations"),
        year_keys=("fiscal_year_breakdown", "fiscal_years"),
        ranking=True,
    ),
    # Columns M, N: quarter buckets
    "activeContracts": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Active Contracts",
        path=("expiring_by_quarter",), categorical=True,
    ),
    "discountOfferings": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Discount Offerings",
        path=("offerings_by_quarter", "expiring_by_quarter"), categorical=True,
    ),
    # Columns O, P: year-keyed top-10 lists
    "aiProduct": ColumnRecipe(
        FieldShape.NESTED_BY_YEAR, "AI Products",
        path=("fiscal_year_summaries",),
        name_keys=("product", "product_name"),
        value_keys=("obligations", "total_obligations"),
        inner_keys=("top_10_products",),
    ),
    "aiCategory": ColumnRecipe(
        FieldShape.NESTED_BY_YEAR, "AI Category",
        path=("fiscal_year_summaries",),
        name_keys=("category", "category_name"),
        value_keys=("obligations", "total_obligations"),
        inner_keys=("top_10_categories",),
    ),
    # Column Q
    "topBicProducts": ColumnRecipe(
        FieldShape.RANKED_ARRAY, "Top BIC Products",
        path=("top_25_products",),
        name_keys=("product_name", "product"),
        value_keys=("total_price", "total_sales"),
        year_keys=("fiscal_years", "fiscal_year_breakdown"),
        monetary_label=_SALES,
    ),
    # Columns R-U: resellers and manufacturers
    "reseller": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "Reseller",
        path=("top_15_reseller_summaries",),
    ),
    "bicReseller": ColumnRecipe(
        FieldShape.RANKED_ARRAY, "BIC Reseller",
        path=("top_15_resellers",),
        name_keys=("vendor_name", "reseller_name", "name"),
        value_keys=("total_sales",),
        monetary_label=_SALES,
    ),
    "bicOem": ColumnRecipe(
        FieldShape.RANKED_ARRAY, "BIC OEM",
        path=("top_15_manufacturers",),
        name_keys=("manufacturer_name", "oem_name", "name"),
        value_keys=("total_sales",),
        monetary_label=_SALES,
    ),
    "fasOem": ColumnRecipe(
        FieldShape.NAMED_CATEGORY_MAP, "FAS OEM",
        path=("top_10_oem_summaries",),
        value_keys=("total_obligations", "total"),
    ),
    # Column W: per-agency top products
    "bicTopProductsPerAgency": ColumnRecipe(
        FieldShape.NESTED_BY_ENTITY, "BIC Top Products per Agency",
        path=("top_10_agencies",),
        name_keys=("product_name", "product"),
        value_keys=("total_sales", "total_price", "obligations"),
        inner_keys=("top_3_products", "top_products"),
        outer_total_keys=("agency_total", "total_sales", "total"),
        monetary_label=_SALES,
    ),
    # Column X
    "oneGovTier": ColumnRecipe(
        FieldShape.SCALAR_WITH_YEARS, "OneGov Tier",
        total_keys=("total_obligated", "total_obligations", "total"),
    ),
}

# Legacy identifiers that share a recipe with a current field
COLUMN_ALIASES: dict[str, str] = {
    "productObligations": "aiProduct",
    "aiCategories": "aiCategory",
    "categoryObligations": "aiCategory",
}

GENERIC_RECIPE = ColumnRecipe(FieldShape.GENERIC, "")


def get_recipe(field_id: str) -> ColumnRecipe:
    """Return the extraction recipe for ``field_id``.

    Unknown identifiers get GENERIC_RECIPE; this never raises.
    """
    field_id = COLUMN_ALIASES.get(field_id, field_id)
    return COLUMN_CATALOG.get(field_id, GENERIC_RECIPE)


def is_known_field(field_id: str) -> bool:
    """True for catalog identifiers and their aliases."""
    return field_id in COLUMN_CATALOG or field_id in COLUMN_ALIASES


def known_fields() -> list[str]:
    """Catalog field identifiers in display order (aliases excluded)."""
    return list(COLUMN_CATALOG)


def get_display_name(field_id: str) -> str:
    """Human-readable column name; unknown ids are returned unchanged."""
    recipe = get_recipe(field_id)
    return recipe.display_name or field_id


def get_monetary_label(field_id: str) -> str:
    """Return "Sales" for BIC fields and "Obligations" for everything else."""
    return get_recipe(field_id).monetary_label
