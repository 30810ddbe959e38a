"""
Unit tests for utils/strings.py, utils/patterns.py, utils/formatting.py
and utils/config.py.

No network or database required; config round-trips use tmp_path.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import AppConfig, BuffetConfig, KnownValues
from utils.formatting import (
    TableFormatter,
    format_currency_short,
    format_percent,
    format_signed_percent,
    format_table_currency,
)
from utils.patterns import CURRENCY_SYMBOLS, FISCAL_YEAR_KEY, WHITESPACE, YEAR_RANGE
from utils.strings import abbreviate_agency_name, is_number, normalize_whitespace, safe_float


# ── safe_float ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("val, expected", [
    (None,    0.0),
    ("",      0.0),
    (" ",     0.0),
    (123,     123.0),
    (0,       0.0),
    (-5.5,    -5.5),
    ("-5.5",  -5.5),
    ("12.34", 12.34),
    ("abc",   0.0),
    (True,    0.0),   # booleans are never amounts
])
def test_safe_float(val, expected):
    assert safe_float(val) == expected


def test_safe_float_currency_symbols():
    assert safe_float("$1,234.56") == 1234.56


def test_safe_float_custom_default():
    assert safe_float("n/a", default=-1.0) == -1.0


@pytest.mark.parametrize("val", [
    float("nan"), float("inf"), float("-inf"), "NaN", "Infinity", "-inf", "1e999",
])
def test_safe_float_non_finite(val):
    assert safe_float(val) == 0.0
    assert safe_float(val, default=-1.0) == -1.0


@pytest.mark.parametrize("val, expected", [
    (1, True), (1.5, True), (False, False), ("1", False), (None, False),
    (float("nan"), False), (float("inf"), False),
])
def test_is_number(val, expected):
    assert is_number(val) is expected


def test_normalize_whitespace():
    assert normalize_whitespace("DEPT OF   THE\n NAVY ") == "DEPT OF THE NAVY"


# ── abbreviate_agency_name ────────────────────────────────────────────────────

class TestAbbreviateAgencyName:
    def test_exact_match(self):
        assert abbreviate_agency_name("DEPT OF THE NAVY") == "Navy"

    def test_case_and_whitespace_insensitive(self):
        assert abbreviate_agency_name("Veterans  Affairs, Department of") == "VA"

    def test_substring_match(self):
        assert abbreviate_agency_name("U.S. CUSTOMS AND BORDER PROTECTION HQ") == "CBP"

    def test_long_unknown_name_truncated(self):
        name = "OFFICE OF THE VERY LONG AGENCY NAME"
        short = abbreviate_agency_name(name)
        assert short.endswith("...")
        assert len(short) == 25

    def test_short_unknown_name_unchanged(self):
        assert abbreviate_agency_name("Peace Corps") == "Peace Corps"

    def test_empty(self):
        assert abbreviate_agency_name("") == ""


# ── Patterns ──────────────────────────────────────────────────────────────────

class TestPatterns:
    @pytest.mark.parametrize("key, year", [
        ("2024", "2024"), ("FY2024", "2024"), ("FY 2024", "2024"), ("fy2023", "2023"),
    ])
    def test_fiscal_year_key(self, key, year):
        assert FISCAL_YEAR_KEY.match(key).group(1) == year

    @pytest.mark.parametrize("key", ["fy24", "total", "20245", "Q1 2024"])
    def test_fiscal_year_key_rejects(self, key):
        assert FISCAL_YEAR_KEY.match(key) is None

    def test_year_range(self):
        assert YEAR_RANGE.match("2023").groups() == ("2023", None)
        assert YEAR_RANGE.match(" 2023 - 2025 ").groups() == ("2023", "2025")
        assert YEAR_RANGE.match("2023-") is None

    def test_whitespace_and_currency(self):
        assert WHITESPACE.sub(" ", "a \t\n b") == "a b"
        assert CURRENCY_SYMBOLS.sub("", "$1€2") == "12"


# ── Formatting ────────────────────────────────────────────────────────────────

class TestCurrencyFormatting:
    @pytest.mark.parametrize("value, expected", [
        (None, "$0"),
        (0, "$0"),
        (7_500_000_000, "$7.5B"),
        (2_000_000_000, "$2000.0M"),
        (1_200_000, "$1.2M"),
    ])
    def test_currency_short(self, value, expected):
        assert format_currency_short(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (6_000_000_000, "$6.0B"),
        (2_500_000, "$2.5M"),
        (45_000, "$45K"),
        (512, "$512"),
        (0, "$0"),
    ])
    def test_table_currency(self, value, expected):
        assert format_table_currency(value) == expected


class TestPercentFormatting:
    def test_format_percent(self):
        assert format_percent(42.5) == "42.5%"
        assert format_percent(66.6666) == "66.7%"
        assert format_percent(None) == "-"

    def test_signed_percent(self):
        assert format_signed_percent(50) == "+50.0%"
        assert format_signed_percent(-12.5) == "-12.5%"


class TestTableFormatter:
    def test_widths_grow_with_rows(self):
        table = TableFormatter(["Name", "Value"])
        table.add_row(["Carahsoft", "$150"])
        assert table.column_widths == [9, 5]

    def test_numeric_cells_right_aligned(self):
        table = TableFormatter(["Name", "Value"], column_widths=[4, 6])
        table.add_row(["CDW", "$350"])
        lines = table.to_string().splitlines()
        assert lines[1] == "----  ------"
        assert lines[2].endswith("  $350")

    def test_wrong_value_count(self):
        with pytest.raises(ValueError):
            TableFormatter(["A", "B"]).add_row(["only one"])


# ── Config ────────────────────────────────────────────────────────────────────

class TestConfig:
    def test_buffet_defaults(self):
        cfg = BuffetConfig()
        assert cfg.display_count == 10
        assert cfg.include_overflow_bucket is True
        assert not hasattr(cfg, "percentage_base")

    def test_to_dict_lists_public_settings(self):
        cfg = BuffetConfig()
        cfg._scratch = True
        assert cfg.to_dict() == {
            "display_count": 10,
            "include_overflow_bucket": True,
            "department_filter": "all",
            "classification_filter": "all",
            "year_filter": "all",
            "generated_by": "chartBuffet",
        }

    def test_app_config_defaults(self, monkeypatch):
        for var in ("APP_DATA_PATH", "APP_PORT", "APP_HOST", "APP_LOG_FORMAT", "APP_CORS_ORIGINS"):
            monkeypatch.delenv(var, raising=False)
        cfg = AppConfig.from_env()
        assert cfg.data_path == Path("entities.json")
        assert cfg.api_port == 8000
        assert cfg.cors_origins == ["*"]

    def test_app_config_from_env(self, monkeypatch):
        monkeypatch.setenv("APP_DATA_PATH", "/data/agencies.json")
        monkeypatch.setenv("APP_PORT", "9001")
        monkeypatch.setenv("APP_CORS_ORIGINS", "http://a.test, http://b.test")
        cfg = AppConfig.from_env()
        assert cfg.data_path == Path("/data/agencies.json")
        assert cfg.api_port == 9001
        assert cfg.cors_origins == ["http://a.test", "http://b.test"]


class TestKnownValues:
    def test_entity_types(self):
        assert KnownValues.is_valid_entity_type("agency")
        assert not KnownValues.is_valid_entity_type("department")

    @pytest.mark.parametrize("name", [
        "DEPARTMENT OF THE ARMY", "Defense Logistics Agency", "DEPT OF THE NAVY",
    ])
    def test_dod_agencies(self, name):
        assert KnownValues.is_dod_agency(name)

    @pytest.mark.parametrize("name", [
        "VETERANS AFFAIRS, DEPARTMENT OF", "INTERNAL REVENUE SERVICE", None,
    ])
    def test_civilian_agencies(self, name):
        assert not KnownValues.is_dod_agency(name)

    def test_entity_type_names(self):
        assert KnownValues.get_entity_type_name("oem") == "OEM"
        assert KnownValues.get_entity_type_name("vendor") == "Vendor"
        assert KnownValues.get_entity_type_name("region") == "Region"
