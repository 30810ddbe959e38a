"""String processing utilities for the chart buffet tools.

safe_float() is called for every leaf value the extractor touches, so it
relies on pre-compiled patterns rather than inline regex construction.
"""

import math

from utils.config import KnownValues
from utils.patterns import WHITESPACE, CURRENCY_SYMBOLS


def safe_float(val, default: float = 0.0) -> float:
    """Safely convert value to float with fallback default.

    Handles:
    - None, empty strings, booleans -> default
    - Numeric types -> float
    - Strings with currency symbols, whitespace, commas
    - NaN and infinities (numeric or spelled out) -> default
    - Invalid input -> default

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed finite value or default
    """
    if val is None or val == '' or isinstance(val, bool):
        return default
    try:
        if isinstance(val, (int, float)):
            result = float(val)
        else:
            s = str(val).strip()
            s = CURRENCY_SYMBOLS.sub('', s)
            s = s.replace(',', '').strip()
            if not s:
                return default
            result = float(s)
    except (ValueError, TypeError, OverflowError):
        return default
    return result if math.isfinite(result) else default


def is_number(val) -> bool:
    """Return True for finite int/float values (booleans excluded)."""
    return isinstance(val, (int, float)) and not isinstance(val, bool) \
        and math.isfinite(val)


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters to single spaces.

    Example:
        "DEPT OF   THE\\n NAVY" -> "DEPT OF THE NAVY"
    """
    return WHITESPACE.sub(' ', s).strip()


def abbreviate_agency_name(agency_name: str, max_length: int = 25) -> str:
    """Shorten a federal agency name for chart labels.

    Exact matches against KnownValues.AGENCY_ABBREVIATIONS win first, then
    substring matches in table order.  Anything else longer than
    ``max_length`` is cut to ``max_length - 3`` characters plus "...".

    Examples:
        abbreviate_agency_name("DEPT OF THE NAVY") -> "Navy"
        abbreviate_agency_name("Veterans Affairs, Department of") -> "VA"
    """
    if not agency_name or not isinstance(agency_name, str):
        return agency_name

    upper_name = normalize_whitespace(agency_name).upper()
    abbreviations = KnownValues.AGENCY_ABBREVIATIONS
    if upper_name in abbreviations:
        return abbreviations[upper_name]

    for full_name, abbrev in abbreviations.items():
        if full_name in upper_name:
            return abbrev

    if len(agency_name) > max_length:
        return agency_name[:max_length - 3] + "..."
    return agency_name
