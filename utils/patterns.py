"""Pre-compiled regex patterns for the chart buffet tools.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import FISCAL_YEAR_KEY, YEAR_RANGE

    if FISCAL_YEAR_KEY.match(key):
        ...
"""

import re

# Fiscal year keys as they appear in nested year maps
# Matches: "2024", "FY2024", "FY 2024", "fy24" is NOT matched
FISCAL_YEAR_KEY = re.compile(r'^(?:FY\s*)?((?:19|20)\d{2})$', re.IGNORECASE)

# Year filter expressions: "2023" or "2023-2025" (inclusive)
YEAR_RANGE = re.compile(r'^\s*(\d{4})\s*(?:-\s*(\d{4}))?\s*$')

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# Currency symbols for stripping during numeric conversion
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽]')
