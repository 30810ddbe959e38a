"""Shared utilities for the chart buffet tools."""

# Pattern definitions
from utils.patterns import (
    FISCAL_YEAR_KEY,
    YEAR_RANGE,
    WHITESPACE,
    CURRENCY_SYMBOLS,
)

# String utilities
from utils.strings import safe_float, is_number, normalize_whitespace, abbreviate_agency_name

# Output formatting
from utils.formatting import (
    format_currency_short,
    format_table_currency,
    format_percent,
    format_signed_percent,
    TableFormatter,
)

# Configuration
from utils.config import (
    Config,
    BuffetConfig,
    AppConfig,
    KnownValues,
)

__all__ = [
    # Patterns
    "FISCAL_YEAR_KEY",
    "YEAR_RANGE",
    "WHITESPACE",
    "CURRENCY_SYMBOLS",
    # Strings
    "safe_float",
    "is_number",
    "normalize_whitespace",
    "abbreviate_agency_name",
    # Formatting
    "format_currency_short",
    "format_table_currency",
    "format_percent",
    "format_signed_percent",
    "TableFormatter",
    # Config
    "Config",
    "BuffetConfig",
    "AppConfig",
    "KnownValues",
]
