"""
Tests for buffet/selector.py — chart-kind selection matrix and fallbacks
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from buffet.catalog import known_fields
from buffet.selector import (
    CHART_TYPE_MATRIX,
    DISTRIBUTION_KINDS,
    TREND_KINDS,
    legacy_chart_kinds,
    select_chart_kinds,
    snap_display_count,
)


class TestSnapDisplayCount:
    @pytest.mark.parametrize("requested,bucket", [
        (1, 5), (5, 5), (6, 10), (12, 15), (20, 20), (21, "all"), ("all", "all"), (None, "all"),
    ])
    def test_rounds_up(self, requested, bucket):
        assert snap_display_count(requested) == bucket


class TestMatrix:
    def test_every_catalog_field_and_entity_type_covered(self):
        for field_id in known_fields():
            for entity_type in ("agency", "oem", "vendor"):
                assert (entity_type, field_id, 10) in CHART_TYPE_MATRIX

    def test_only_known_chart_kinds(self):
        known = set(DISTRIBUTION_KINDS) | set(TREND_KINDS)
        for kinds in CHART_TYPE_MATRIX.values():
            assert set(kinds) <= known


class TestSelectChartKinds:
    def test_small_count_includes_circular_charts(self):
        kinds = select_chart_kinds("agency", "obligations", 10)
        assert kinds[0] == "verticalBar"
        assert "pie" in kinds and "fiscalTrend" in kinds

    def test_wide_count_drops_circular_charts(self):
        kinds = select_chart_kinds("agency", "obligations", 25)
        assert "pie" not in kinds and "doughnut" not in kinds

    def test_categorical_fields_keep_pies_at_all(self):
        assert "pie" in select_chart_kinds("agency", "sumTier", "all")

    def test_ranking_fields(self):
        kinds = select_chart_kinds("vendor", "topRefPiid", 5)
        assert kinds[0] == "funnel"
        assert "pie" not in kinds

    def test_aliases_resolve(self):
        assert select_chart_kinds("agency", "productObligations", 10) == \
            select_chart_kinds("agency", "aiProduct", 10)

    def test_unknown_entity_type_falls_back_to_agency(self):
        assert select_chart_kinds("department", "reseller", 10) == \
            select_chart_kinds("agency", "reseller", 10)

    def test_unknown_field_uses_legacy_heuristic(self):
        assert select_chart_kinds("agency", "mystery", 3) == \
            ["verticalBar", "horizontalBar", "pie", "doughnut"]
        assert select_chart_kinds("agency", "mystery", 8) == \
            ["horizontalBar", "stackedBar", "pie"]
        assert select_chart_kinds("agency", "mystery", "all") == ["horizontalBar", "funnel"]

    def test_result_size_drives_legacy_heuristic(self):
        assert select_chart_kinds("agency", "mystery", "all", result_size=4)[0] == "verticalBar"

    def test_returns_a_fresh_list(self):
        kinds = select_chart_kinds("agency", "obligations", 10)
        kinds.append("extra")
        assert "extra" not in select_chart_kinds("agency", "obligations", 10)


class TestLegacyChartKinds:
    def test_ranking_field(self):
        assert legacy_chart_kinds("topPiid", 3) == ["funnel", "horizontalBar", "verticalBar"]

    def test_large_result(self):
        assert legacy_chart_kinds("mystery", 40) == ["horizontalBar", "funnel"]
