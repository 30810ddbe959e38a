"""
Tests for buffet/catalog.py — field recipes, aliases and labels
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from buffet.catalog import (
    COLUMN_ALIASES,
    COLUMN_CATALOG,
    GENERIC_RECIPE,
    FieldShape,
    get_display_name,
    get_monetary_label,
    get_recipe,
    is_known_field,
    known_fields,
)


class TestGetRecipe:
    def test_known_field(self):
        recipe = get_recipe("reseller")
        assert recipe.shape is FieldShape.NAMED_CATEGORY_MAP
        assert recipe.path == ("top_15_reseller_summaries",)

    def test_unknown_field_gets_generic(self):
        assert get_recipe("mystery") is GENERIC_RECIPE

    @pytest.mark.parametrize("alias, target", sorted(COLUMN_ALIASES.items()))
    def test_aliases_share_recipe(self, alias, target):
        assert get_recipe(alias) is COLUMN_CATALOG[target]
        assert is_known_field(alias)

    def test_ranking_fields(self):
        assert {f for f in known_fields() if get_recipe(f).ranking} == {"topRefPiid", "topPiid"}


class TestLabels:
    def test_display_names(self):
        assert get_display_name("sumTier") == "SUM Tier"
        assert get_display_name("productObligations") == "AI Products"
        assert get_display_name("mystery") == "mystery"

    @pytest.mark.parametrize("field_id, label", [
        ("bicOem", "Sales"),
        ("topBicProducts", "Sales"),
        ("bicTopProductsPerAgency", "Sales"),
        ("reseller", "Obligations"),
        ("mystery", "Obligations"),
    ])
    def test_monetary_labels(self, field_id, label):
        assert get_monetary_label(field_id) == label


def test_known_fields_exclude_aliases():
    fields = known_fields()
    assert fields[0] == "obligations"
    assert not set(COLUMN_ALIASES) & set(fields)
    assert not is_known_field("mystery")
