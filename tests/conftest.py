"""
Pytest fixtures for chart buffet tests

Provides small entity populations covering each nested field shape:

    obligation_entities   the two-agency obligations example (A=100, B=50)
    reseller_entities     named category maps with per-category year maps
    tier_entities         categorical SUM tier summaries on three agencies
    ai_product_entities   year-keyed top-10 product lists
    entity_store          InMemoryEntityStore holding all of the above
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from buffet.models import Entity
from buffet.store import InMemoryEntityStore


def make_entity(name: str, entity_id: str | None = None, entity_type: str = "agency",
                attributes: dict | None = None, **fields) -> Entity:
    """Build an Entity directly, bypassing record parsing."""
    return Entity(
        id=entity_id or f"{entity_type}-{name}",
        name=name,
        entity_type=entity_type,
        fields=fields,
        attributes=attributes or {},
    )


@pytest.fixture()
def obligation_entities():
    return [
        make_entity("A", obligations={"total": 100, "years": {"2023": 40, "2024": 60}}),
        make_entity("B", obligations={"total": 50, "years": {"2023": 20, "2024": 30}}),
    ]


@pytest.fixture()
def reseller_entities():
    return [
        make_entity(
            "DEPARTMENT OF THE ARMY",
            attributes={"cfoActAgency": "No"},
            reseller={"top_15_reseller_summaries": {
                "CDW": {"total_obligations": 300, "fiscal_years": {"2024": 100, "2025": 200}},
                "SHI": {"total_obligations": 100, "fiscal_years": {"2024": 100}},
            }},
        ),
        make_entity(
            "VETERANS AFFAIRS, DEPARTMENT OF",
            attributes={"cfoActAgency": "Yes"},
            reseller={"top_15_reseller_summaries": {
                "CDW": {"total_obligations": 50},
                "Carahsoft": {"total_obligations": 150, "fiscal_years": {"2025": 150}},
            }},
        ),
    ]


@pytest.fixture()
def tier_entities():
    return [
        make_entity("DEPARTMENT OF THE NAVY",
                    sumTier={"tier_summaries": {"TIER 1": {"total": 70}, "BIC": {"total": 30}}}),
        make_entity("HOMELAND SECURITY, DEPARTMENT OF",
                    sumTier={"tier_summaries": {"TIER 2": {"total": 40}, "BIC": {"total": 10}}}),
        make_entity("INTERNAL REVENUE SERVICE",
                    sumTier={"tier_summaries": {"TIER 1": {"total": 5}}}),
    ]


@pytest.fixture()
def ai_product_entities():
    return [
        make_entity("A", aiProduct={"fiscal_year_summaries": {
            "2024": {
                "total_obligations": 90,
                "top_10_products": [
                    {"product": "GPU", "obligations": 60},
                    {"product": "LLM", "obligations": 30},
                ],
            },
            "2025": {
                "top_10_products": [{"product": "GPU", "obligations": 40}],
            },
        }}),
    ]


@pytest.fixture()
def entity_store(obligation_entities, reseller_entities, tier_entities):
    store = InMemoryEntityStore()
    for entity in obligation_entities + reseller_entities + tier_entities:
        store.add(entity)
    return store
