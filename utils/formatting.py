"""Output formatting utilities for the chart buffet tools.

Provides reusable functions for:
- Formatting currency amounts for chart labels and table cells
- Plain and signed percentage labels
- Tabular report output for the command line
"""

from typing import Optional, List, Any


def format_currency_short(value: Optional[float]) -> str:
    """Format a dollar amount for chart labels.

    Billions are only used from $5B upward; everything else is shown in
    millions so neighbouring bars read on the same scale.

    Args:
        value: Amount in dollars (can be None or 0)

    Returns:
        Formatted string like "$7.5B" or "$1.2M"

    Examples:
        format_currency_short(7_500_000_000) -> "$7.5B"
        format_currency_short(2_000_000_000) -> "$2000.0M"
        format_currency_short(None) -> "$0"
    """
    if not value:
        return "$0"
    if abs(value) >= 5_000_000_000:
        return f"${value / 1_000_000_000:.1f}B"
    return f"${value / 1_000_000:.1f}M"


def format_table_currency(value: Optional[float]) -> str:
    """Format a dollar amount for table cells.

    Examples:
        format_table_currency(6_000_000_000) -> "$6.0B"
        format_table_currency(2_500_000) -> "$2.5M"
        format_table_currency(45_000) -> "$45K"
        format_table_currency(512) -> "$512"
        format_table_currency(0) -> "$0"
    """
    if not value:
        return "$0"
    num = float(value)
    if num >= 5_000_000_000:
        return f"${num / 1_000_000_000:.1f}B"
    if num >= 1_000_000:
        return f"${num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"${num / 1_000:.0f}K"
    return f"${num:.0f}"


def format_percent(value: Optional[float], precision: int = 1) -> str:
    """Format a percentage for display.

    Args:
        value: Percentage value (0.0 to 100.0)
        precision: Decimal places (default: 1)

    Returns:
        Formatted string like "42.5%"

    Examples:
        format_percent(42.5) -> "42.5%"
        format_percent(0) -> "0.0%"
        format_percent(None) -> "-"
    """
    if value is None:
        return "-"
    return f"{value:.{precision}f}%"


def format_signed_percent(value: Optional[float], precision: int = 1) -> str:
    """Format a growth rate with an explicit sign ("+50.0%", "-12.5%")."""
    if value is None:
        return "-"
    return f"{value:+.{precision}f}%"


class TableFormatter:
    """Formats data as aligned tabular output."""

    def __init__(self, columns: List[str], column_widths: Optional[List[int]] = None):
        """Initialize table formatter.

        Args:
            columns: List of column headers
            column_widths: Optional list of column widths (auto-calculated if None)
        """
        self.columns = columns
        self.column_widths = column_widths or [len(col) for col in columns]
        self.rows: List[List[str]] = []

    def add_row(self, values: List[Any]) -> None:
        """Add a row to the table.

        Raises:
            ValueError: If value count doesn't match column count
        """
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} values, got {len(values)}")

        str_values = []
        for i, val in enumerate(values):
            str_val = str(val) if val is not None else "-"
            str_values.append(str_val)
            if len(str_val) > self.column_widths[i]:
                self.column_widths[i] = len(str_val)

        self.rows.append(str_values)

    def _format_row(self, values: List[str], is_header: bool = False) -> str:
        cells = []
        for i, val in enumerate(values):
            width = self.column_widths[i]
            if is_header:
                cells.append(val.ljust(width))
            else:
                # Right-align numeric cells and currency/percent labels
                stripped = val.replace("$", "").replace("%", "").replace(",", "")
                stripped = stripped.rstrip("BMK").lstrip("+-")
                try:
                    float(stripped)
                    cells.append(val.rjust(width))
                except ValueError:
                    cells.append(val.ljust(width))

        return "  ".join(cells)

    def to_string(self, show_header: bool = True, show_separator: bool = True) -> str:
        """Format table as multi-line string."""
        lines = []

        if show_header:
            lines.append(self._format_row(self.columns, is_header=True))
            if show_separator:
                sep = "  ".join("-" * w for w in self.column_widths)
                lines.append(sep)

        for row in self.rows:
            lines.append(self._format_row(row))

        return "\n".join(lines)

    def print_table(self, show_header: bool = True, show_separator: bool = True) -> None:
        """Print table to stdout."""
        print(self.to_string(show_header, show_separator))
