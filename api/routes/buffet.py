"""
GET /api/v1/buffet endpoints.

    /buffet/columns                      catalog of summarizable fields
    /buffet/{entity_type}/{field_id}     every card for one field

Query parameters map one-to-one onto ViewOptions.  ``percentage_base`` is
required: the caller decides whether shares are relative to the whole
population ("total") or to the displayed set ("displayed").
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi import Query as FQuery
from fastapi.responses import JSONResponse

from api.dependencies import get_entity_store
from api.models import BuffetResponse, ColumnOut, ColumnsResponse, ErrorResponse
from buffet.catalog import COLUMN_ALIASES, get_recipe, known_fields
from buffet.generator import generate_from_store
from buffet.models import ViewOptions
from buffet.store import EntityStore
from utils.config import KnownValues

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/buffet", tags=["buffet"])


def _bad_request(detail: str) -> JSONResponse:
    body = ErrorResponse(error="Bad request", detail=detail, status_code=400)
    return JSONResponse(status_code=400, content=body.model_dump())


@router.get("/columns", response_model=ColumnsResponse, summary="List summarizable fields")
def list_columns() -> ColumnsResponse:
    """Return every catalog field with its shape, labels and legacy aliases."""
    columns: list[ColumnOut] = []
    for field_id in known_fields():
        recipe = get_recipe(field_id)
        columns.append(ColumnOut(
            field_id=field_id,
            display_name=recipe.display_name,
            shape=recipe.shape.value,
            monetary_label=recipe.monetary_label,
            categorical=recipe.categorical,
            ranking=recipe.ranking,
            aliases=sorted(a for a, target in COLUMN_ALIASES.items() if target == field_id),
        ))
    return ColumnsResponse(entity_types=sorted(KnownValues.ENTITY_TYPES), columns=columns)


@router.get(
    "/{entity_type}/{field_id}",
    response_model=BuffetResponse,
    summary="Generate the chart buffet for one field",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid entity type or options"},
        503: {"description": "Entity data file not found"},
    },
)
def get_buffet(
    entity_type: str,
    field_id: str,
    percentage_base: str = FQuery(
        ...,
        description="Percentage base: 'total' (all categories) or 'displayed' (returned items)",
    ),
    display_count: str = FQuery("10", description="Top-N count or 'all'"),
    include_overflow_bucket: bool = FQuery(True, description="Fold the remainder into 'All Other'"),
    department_filter: str = FQuery("all", description="all | dod | civilian"),
    classification_filter: str = FQuery("all", description="CFO Act filter: all | Yes | No"),
    year_filter: str = FQuery("all", description="'2024', '2023-2025' or 'all'"),
    entity_names: list[str] | None = FQuery(None, description="Restrict to these entity names"),
    chart_kind: list[str] | None = FQuery(None, description="Override the selected chart kinds"),
    store: EntityStore = Depends(get_entity_store),
) -> BuffetResponse | JSONResponse:
    """Generate every view card for ``field_id`` across ``entity_type``.

    Invalid options raise ValueError, which the app maps to HTTP 400.  An
    unknown entity type or a rejected request gets the same ErrorResponse body.
    """
    if not KnownValues.is_valid_entity_type(entity_type):
        return _bad_request(f"entity_type must be one of: {sorted(KnownValues.ENTITY_TYPES)}")

    options = ViewOptions.from_dict({
        "percentage_base": percentage_base,
        "display_count": display_count,
        "include_overflow_bucket": include_overflow_bucket,
        "department_filter": department_filter,
        "classification_filter": classification_filter,
        "year_filter": year_filter,
        "selected_entity_names": entity_names,
        "chart_kinds": chart_kind,
    })
    result = generate_from_store(store, entity_type, field_id, options)
    if not result.success and result.error is not None:
        return _bad_request(result.error["message"])
    return BuffetResponse.model_validate(result.to_dict())
