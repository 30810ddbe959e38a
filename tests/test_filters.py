"""
Tests for buffet/filters.py — name, department and classification filters
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from buffet.filters import (
    apply_entity_filters,
    filter_by_classification,
    filter_by_department,
    filter_by_names,
)
from buffet.models import ViewOptions
from conftest import make_entity


def _names(entities):
    return [e.name for e in entities]


POPULATION = [
    make_entity("DEPARTMENT OF THE ARMY", attributes={"cfoActAgency": "No"}),
    make_entity("VETERANS AFFAIRS, DEPARTMENT OF", attributes={"cfoActAgency": "Yes"}),
    make_entity("DCMA FIELD OFFICE", attributes={"department": "DEPARTMENT OF DEFENSE"}),
    make_entity("PEACE CORPS"),
]


class TestFilterByNames:
    def test_keeps_selected(self):
        assert _names(filter_by_names(POPULATION, ["PEACE CORPS"])) == ["PEACE CORPS"]

    def test_empty_selection_keeps_all(self):
        assert len(filter_by_names(POPULATION, None)) == 4
        assert len(filter_by_names(POPULATION, [])) == 4

    def test_unknown_names_match_nothing(self):
        assert filter_by_names(POPULATION, ["NOBODY"]) == []


class TestFilterByDepartment:
    def test_dod_by_name_or_attribute(self):
        assert _names(filter_by_department(POPULATION, "dod")) == [
            "DEPARTMENT OF THE ARMY", "DCMA FIELD OFFICE",
        ]

    def test_civilian(self):
        assert _names(filter_by_department(POPULATION, "civilian")) == [
            "VETERANS AFFAIRS, DEPARTMENT OF", "PEACE CORPS",
        ]

    def test_all(self):
        assert len(filter_by_department(POPULATION, "all")) == 4


class TestFilterByClassification:
    def test_yes(self):
        assert _names(filter_by_classification(POPULATION, "Yes")) == [
            "VETERANS AFFAIRS, DEPARTMENT OF",
        ]

    def test_no_includes_missing_attribute(self):
        assert len(filter_by_classification(POPULATION, "No")) == 3


class TestApplyEntityFilters:
    def test_filters_combine(self):
        options = ViewOptions(percentage_base="total", department_filter="civilian",
                              classification_filter="No")
        assert _names(apply_entity_filters(POPULATION, options)) == ["PEACE CORPS"]

    def test_input_untouched(self):
        population = list(POPULATION)
        apply_entity_filters(population, ViewOptions(percentage_base="total",
                                                     selected_entity_names=["PEACE CORPS"]))
        assert population == POPULATION
