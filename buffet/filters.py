"""
Entity filters applied before extraction.

Name, department and classification filters narrow the entity population
for one buffet.  Each returns a new list and leaves its input untouched;
the fiscal-year window is handled separately by buffet.fiscal.
"""

from __future__ import annotations

import logging
from typing import Iterable

from buffet.models import Entity, ViewOptions
from utils.config import KnownValues

logger = logging.getLogger(__name__)


def filter_by_names(entities: Iterable[Entity], names: list[str] | None) -> list[Entity]:
    """Keep entities whose display name is in ``names`` (all when empty)."""
    entities = list(entities)
    if not names:
        return entities
    wanted = set(names)
    return [e for e in entities if e.name in wanted]


def filter_by_department(entities: Iterable[Entity], department_filter: str) -> list[Entity]:
    """Keep DoD ("dod") or non-DoD ("civilian") agencies.

    Agencies are classified by name; an explicit ``department`` attribute
    is checked as well.
    """
    entities = list(entities)
    if department_filter == "all":
        return entities

    def is_dod(entity: Entity) -> bool:
        return KnownValues.is_dod_agency(entity.name) \
            or KnownValues.is_dod_agency(entity.attributes.get("department"))

    if department_filter == "dod":
        return [e for e in entities if is_dod(e)]
    return [e for e in entities if not is_dod(e)]


def filter_by_classification(entities: Iterable[Entity],
                             classification_filter: str) -> list[Entity]:
    """Filter on the CFO Act attribute; a missing attribute counts as "No"."""
    entities = list(entities)
    if classification_filter == "all":
        return entities
    if classification_filter == "Yes":
        return [e for e in entities if e.attributes.get("cfoActAgency") == "Yes"]
    return [e for e in entities if e.attributes.get("cfoActAgency") != "Yes"]


def apply_entity_filters(entities: Iterable[Entity], options: ViewOptions) -> list[Entity]:
    """Apply the name, department and classification filters in that order."""
    entities = list(entities)
    before = len(entities)
    result = filter_by_names(entities, options.selected_entity_names)
    result = filter_by_department(result, options.department_filter)
    result = filter_by_classification(result, options.classification_filter)
    if len(result) != before:
        logger.debug("Entity filters kept %d of %d entities", len(result), before)
    return result
