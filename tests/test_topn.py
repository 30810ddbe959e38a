"""
Tests for buffet/topn.py — ranking, overflow bucket and percentage bases
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from buffet.models import CategoryAggregate
from buffet.topn import OVERFLOW_LABEL, select_top_n


def _cats(*pairs):
    return [CategoryAggregate(name, value) for name, value in pairs]


class TestSelectTopN:
    def test_worked_example_displayed_base(self):
        result = select_top_n(_cats(("A", 100), ("B", 50)), 1, True, "displayed")
        assert [(i.name, i.value) for i in result.items] == [("A", 100), (OVERFLOW_LABEL, 50)]
        assert result.items[0].percentage == pytest.approx(66.666, abs=0.01)
        assert result.items[1].percentage == pytest.approx(33.333, abs=0.01)
        assert result.items[1].is_overflow_bucket
        assert result.items[1].rank is None

    def test_displayed_base_with_overflow_sums_to_100(self):
        cats = _cats(("A", 7), ("B", 5), ("C", 3), ("D", 2), ("E", 1))
        result = select_top_n(cats, 2, True, "displayed")
        assert sum(i.percentage for i in result.items) == pytest.approx(100.0)

    def test_total_base_uses_full_population(self):
        cats = _cats(("A", 60), ("B", 30), ("C", 10))
        result = select_top_n(cats, 1, False, "total")
        assert len(result.items) == 1
        assert result.items[0].percentage == pytest.approx(60.0)
        assert result.base_total == 100

    def test_sorted_descending_with_stable_ties(self):
        cats = _cats(("B", 5), ("A", 10), ("C", 5))
        result = select_top_n(cats, "all", True, "total")
        assert [i.name for i in result.items] == ["A", "B", "C"]
        assert [i.rank for i in result.items] == [1, 2, 3]

    def test_no_overflow_when_everything_fits(self):
        result = select_top_n(_cats(("A", 1), ("B", 2)), 5, True, "total")
        assert result.overflow is None
        assert len(result.items) == 2

    def test_no_overflow_when_not_requested(self):
        result = select_top_n(_cats(("A", 3), ("B", 2), ("C", 1)), 1, False, "displayed")
        assert [i.name for i in result.items] == ["A"]
        assert result.items[0].percentage == pytest.approx(100.0)

    def test_overflow_counts_folded_categories(self):
        cats = _cats(("A", 5), ("B", 4), ("C", 3), ("D", 2))
        result = select_top_n(cats, 2, True, "total")
        assert result.overflow.value == 5
        assert result.overflow.folded_count == 2
        assert len(result.ranked) == 2

    def test_existing_overflow_entries_ignored(self):
        cats = _cats(("A", 5)) + [CategoryAggregate(OVERFLOW_LABEL, 99, is_overflow_bucket=True)]
        result = select_top_n(cats, 5, True, "total")
        assert [i.name for i in result.items] == ["A"]
        assert result.total_all == 5

    def test_empty_input(self):
        result = select_top_n([], 10, True, "total")
        assert result.items == []
        assert result.base_total == 0

    @pytest.mark.parametrize("base", [None, "", "share", "Total"])
    def test_percentage_base_required(self, base):
        with pytest.raises(ValueError):
            select_top_n(_cats(("A", 1)), 1, True, base)

    @pytest.mark.parametrize("count", [0, -1, "ten", True])
    def test_invalid_display_count(self, count):
        with pytest.raises(ValueError):
            select_top_n(_cats(("A", 1)), count, True, "total")
