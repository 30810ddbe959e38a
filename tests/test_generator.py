"""
Tests for buffet/generator.py — end-to-end buffet generation

Covers the worked obligations examples, card ordering, caller errors,
malformed data and the failure boundary.
"""
import copy
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import buffet.generator as generator
from buffet.generator import generate_buffet, generate_from_store
from buffet.models import ViewOptions
from conftest import make_entity


def _card(result, kind):
    return next(c for c in result.cards if c.chart_kind == kind)


# ── Worked examples ───────────────────────────────────────────────────────────

class TestWorkedExamples:
    def test_top_one_with_overflow(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "displayCount": 1, "includeOverflowBucket": True, "percentageBase": "displayed",
        })
        assert result.success
        card = _card(result, "verticalBar")
        assert card.chart_spec.labels == ["A", "All Other"]
        assert card.chart_spec.series[0].values == [100.0, 50.0]
        assert [row[3] for row in card.table_spec.rows] == ["66.7%", "33.3%"]

        trend = _card(result, "fiscalTrend")
        assert trend.chart_spec.labels == ["FY2023", "FY2024"]
        assert trend.chart_spec.series[0].values == [60.0, 90.0]
        assert trend.table_spec.rows[1][3] == "+50.0%"

    def test_year_filter_recomputes_totals(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "displayCount": 1, "percentageBase": "displayed", "yearFilter": "2023",
        })
        card = _card(result, "verticalBar")
        assert card.chart_spec.series[0].values == [40.0, 20.0]
        assert [row[3] for row in card.table_spec.rows] == ["66.7%", "33.3%"]
        assert "FY2023 Only" in card.title
        assert result.fiscal_year_filter == "2023"
        # available years come from the unfiltered set
        assert result.available_years == ["2024", "2023"]

    def test_single_year_has_no_trend_cards(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "percentageBase": "total", "yearFilter": "2024",
        })
        kinds = [c.chart_kind for c in result.cards]
        assert "fiscalTrend" not in kinds and "fiscalBar" not in kinds
        assert result.diagnostics.skip_counts_by_category().get("insufficient_data", 0) >= 1


# ── Card ordering ─────────────────────────────────────────────────────────────

class TestCardOrder:
    def test_categorical_field_leads_with_breakdowns(self, tier_entities):
        result = generate_buffet("agency", "sumTier", tier_entities, {"percentageBase": "total"})
        kinds = [c.chart_kind for c in result.cards]
        assert kinds[:3] == ["entityStacked", "entityBreakdown", "verticalBar"]

    def test_entity_named_fields_skip_breakdowns(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {"percentageBase": "total"})
        kinds = [c.chart_kind for c in result.cards]
        assert "entityBreakdown" not in kinds
        assert kinds[0] == "verticalBar"

    def test_card_ids_unique_and_metadata_present(self, reseller_entities):
        result = generate_buffet("agency", "reseller", reseller_entities, {"percentageBase": "total"})
        ids = [c.id for c in result.cards]
        assert len(ids) == len(set(ids))
        for card in result.cards:
            assert set(card.metadata) >= {"generatedBy", "entityType", "columnId", "timestamp"}
            assert card.table_spec is not None

    def test_explicit_chart_kinds(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "percentageBase": "total", "chartKinds": ["pie", "pie", "kpi", "radar"],
        })
        assert [c.chart_kind or c.card_kind for c in result.cards] == ["pie", "kpi"]
        assert result.diagnostics.skip_counts_by_category()["render_skip"] == 1

    def test_trend_appended_when_selection_has_none(self, monkeypatch, obligation_entities):
        monkeypatch.setattr(generator, "select_chart_kinds", lambda *a, **k: ["pie"])
        result = generate_buffet("agency", "obligations", obligation_entities, {"percentageBase": "total"})
        assert [c.chart_kind for c in result.cards] == ["pie", "fiscalTrend"]


# ── Filters ───────────────────────────────────────────────────────────────────

class TestFilters:
    def test_department_filter(self, reseller_entities):
        result = generate_buffet("agency", "reseller", reseller_entities, {
            "percentageBase": "total", "departmentFilter": "civilian",
        })
        card = _card(result, "verticalBar")
        assert card.chart_spec.labels == ["Carahsoft", "CDW"]

    def test_classification_filter(self, reseller_entities):
        result = generate_buffet("agency", "reseller", reseller_entities, {
            "percentageBase": "total", "classificationFilter": "No",
        })
        assert _card(result, "verticalBar").chart_spec.labels == ["CDW", "SHI"]

    def test_selected_entities(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "percentageBase": "total", "selectedEntities": ["B"],
        })
        assert _card(result, "pie").chart_spec.labels == ["B"]


# ── Errors ────────────────────────────────────────────────────────────────────

class TestErrors:
    def test_invalid_entity_type(self, obligation_entities):
        result = generate_buffet("department", "obligations", obligation_entities,
                                 {"percentageBase": "total"})
        assert not result.success
        assert result.error["code"] == "invalid_entity_type"
        assert result.cards == []

    def test_missing_percentage_base(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {"displayCount": 5})
        assert not result.success
        assert result.error["code"] == "invalid_options"

    def test_ambiguous_overflow_flag_rejected(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "percentageBase": "total", "includeOverflowBucket": "0",
        })
        assert not result.success
        assert result.error["code"] == "invalid_options"
        assert "include_overflow_bucket" in result.error["message"]

    def test_string_false_disables_overflow(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "displayCount": 1, "percentageBase": "total", "includeOverflowBucket": "false",
            "chartKinds": ["verticalBar"],
        })
        assert _card(result, "verticalBar").chart_spec.labels == ["A"]

    def test_all_malformed_gives_zero_cards(self):
        entities = [make_entity("A", reseller="{bad"), make_entity("B", reseller="nope")]
        result = generate_buffet("agency", "reseller", entities, {"percentageBase": "total"})
        assert result.success
        assert result.cards == []
        counts = result.diagnostics.skip_counts_by_category()
        assert counts["error_skip"] == 2
        assert counts["insufficient_data"] == 1

    def test_unknown_field_uses_generic_recipe(self, caplog):
        entities = [make_entity("A", mystery={"x": 5}), make_entity("B", mystery={"x": 3})]
        with caplog.at_level(logging.INFO, logger="buffet.generator"):
            result = generate_buffet("agency", "mystery", entities, {"percentageBase": "total"})
        assert result.success
        assert result.cards
        assert "not in the catalog" in caplog.text

    def test_catalog_field_logs_no_fallback(self, caplog, obligation_entities):
        with caplog.at_level(logging.INFO, logger="buffet.generator"):
            generate_buffet("agency", "obligations", obligation_entities,
                            {"percentageBase": "total"})
        assert "not in the catalog" not in caplog.text

    def test_nan_total_does_not_reach_percentages(self, obligation_entities):
        entities = obligation_entities + [make_entity("C", obligations='{"total": NaN}')]
        result = generate_buffet("agency", "obligations", entities, {
            "displayCount": 1, "percentageBase": "total",
        })
        card = _card(result, "verticalBar")
        assert card.chart_spec.labels == ["A", "All Other"]
        assert [row[3] for row in card.table_spec.rows] == ["66.7%", "33.3%"]
        assert result.diagnostics.skip_counts_by_category()["error_skip"] == 1

    def test_internal_failure_returns_empty_cards(self, monkeypatch, obligation_entities):
        def boom(*args, **kwargs):
            raise RuntimeError("extractor exploded")

        monkeypatch.setattr(generator, "extract_categories", boom)
        result = generate_buffet("agency", "obligations", obligation_entities, {"percentageBase": "total"})
        assert result.success
        assert result.cards == []
        assert result.diagnostics.status == "failed"
        assert "extractor exploded" in result.diagnostics.errors[0]

    def test_failing_renderer_does_not_drop_other_cards(self, monkeypatch, obligation_entities):
        def broken_kpi(*args, **kwargs):
            raise KeyError("kpi")

        monkeypatch.setattr(generator, "render_kpi", broken_kpi)
        result = generate_buffet("agency", "obligations", obligation_entities, {
            "percentageBase": "total", "chartKinds": ["kpi", "pie"],
        })
        assert [c.chart_kind for c in result.cards] == ["pie"]
        assert result.diagnostics.items_errored == 1


# ── Inputs ────────────────────────────────────────────────────────────────────

class TestInputs:
    def test_accepts_view_options(self, obligation_entities):
        result = generate_buffet("agency", "obligations", obligation_entities,
                                 ViewOptions(percentage_base="total", display_count=5))
        assert result.success and result.cards

    def test_entities_not_mutated(self, obligation_entities):
        before = copy.deepcopy([e.fields for e in obligation_entities])
        generate_buffet("agency", "obligations", obligation_entities,
                        {"percentageBase": "total", "yearFilter": "2023"})
        assert [e.fields for e in obligation_entities] == before

    def test_deterministic(self, reseller_entities):
        options = {"percentageBase": "total"}
        first = generate_buffet("agency", "reseller", reseller_entities, options)
        second = generate_buffet("agency", "reseller", reseller_entities, options)
        assert [c.table_spec for c in first.cards] == [c.table_spec for c in second.cards]

    def test_generate_from_store(self, entity_store):
        result = generate_from_store(entity_store, "agency", "sumTier", {"percentageBase": "total"})
        assert result.success
        assert result.diagnostics.entities_in == 7

    def test_to_dict_wire_form(self, obligation_entities):
        data = generate_buffet("agency", "obligations", obligation_entities,
                               {"percentageBase": "total"}).to_dict()
        assert set(data) >= {"success", "cards", "availableYears", "fiscalYearFilter"}
        card = data["cards"][0]
        assert set(card) >= {"id", "title", "cardKind", "tableSpec", "chartSpec"}


@pytest.mark.parametrize("field_id", ["reseller", "sumTier", "obligations"])
def test_every_card_has_a_table(field_id, entity_store):
    result = generate_from_store(entity_store, "agency", field_id, {"percentageBase": "displayed"})
    for card in result.cards:
        assert card.table_spec.headers
