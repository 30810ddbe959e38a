"""
Chart Buffet CLI

Generate every view card for one field across one entity type from a JSON
entity file and print the card tables (or the raw cards as JSON).

Usage:
    python generate_buffet.py --data entities.json --entity-type agency \\
        --field obligations --percentage-base total
    python generate_buffet.py --data entities.json --entity-type vendor \\
        --field reseller --percentage-base displayed --top 5 --years 2024-2025
    python generate_buffet.py --columns
"""

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path

from buffet.catalog import get_recipe, known_fields
from buffet.generator import BuffetResult, generate_from_store
from buffet.models import ViewOptions
from buffet.store import JsonEntityStore
from utils.config import AppConfig, KnownValues
from utils.formatting import TableFormatter


# ── Display ───────────────────────────────────────────────────────────────────

def display_columns() -> None:
    """Print the field catalog."""
    table = TableFormatter(["Field", "Display Name", "Shape", "Label"])
    for field_id in known_fields():
        recipe = get_recipe(field_id)
        table.add_row([field_id, recipe.display_name, recipe.shape.value,
                       recipe.monetary_label])
    print()
    table.print_table()


def display_result(result: BuffetResult) -> None:
    """Print each card's title, table and summary."""
    if not result.success:
        print(f"\n  ERROR: {result.error['message'] if result.error else 'unknown error'}")
        return
    if result.available_years:
        print(f"\n  Available fiscal years: {', '.join(result.available_years)}")
    if not result.cards:
        print("\n  No cards generated.")

    for card in result.cards:
        print(f"\n{'=' * 90}")
        print(f"  {card.title}  [{card.chart_kind or card.card_kind}]")
        print(f"{'=' * 90}")
        table = TableFormatter(card.table_spec.headers)
        for row in card.table_spec.rows:
            table.add_row(row)
        print(textwrap.indent(table.to_string(), "  "))
        if card.summary:
            pairs = [f"{k}={v}" for k, v in card.summary.items()]
            print()
            print(textwrap.indent(textwrap.fill("  ".join(pairs), width=86), "  "))

    if result.diagnostics is not None:
        print(f"\n  {result.diagnostics.console_summary()}")


# ── CLI ───────────────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate chart buffet view cards for one field",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
            Examples:
              python generate_buffet.py --entity-type agency --field obligations --percentage-base total
              python generate_buffet.py --entity-type vendor --field reseller --percentage-base displayed --top 5
              python generate_buffet.py --entity-type agency --field sumTier --percentage-base total --dept dod
              python generate_buffet.py --entity-type agency --field obligations --percentage-base total --years 2024
              python generate_buffet.py --columns
        """),
    )
    parser.add_argument("--data", type=Path, default=None,
                        help="Entity JSON file (default: entities.json or APP_DATA_PATH)")
    parser.add_argument("--entity-type", choices=sorted(KnownValues.ENTITY_TYPES),
                        default="agency", help="Entity type (default: agency)")
    parser.add_argument("--field", default=None, help="Field identifier to summarize")
    parser.add_argument("--percentage-base", choices=["total", "displayed"], default=None,
                        help="Percentage base (required with --field)")
    parser.add_argument("--top", default="10",
                        help="Number of categories to show, or 'all' (default: 10)")
    parser.add_argument("--no-overflow", action="store_true",
                        help="Do not fold the remainder into 'All Other'")
    parser.add_argument("--dept", choices=sorted(KnownValues.DEPARTMENT_FILTERS), default="all",
                        help="Department filter (default: all)")
    parser.add_argument("--cfo-act", choices=sorted(KnownValues.CLASSIFICATION_FILTERS),
                        default="all", help="CFO Act filter (default: all)")
    parser.add_argument("--years", default="all",
                        help="Fiscal year window: 2024, 2023-2025 or all (default: all)")
    parser.add_argument("--entity", action="append", default=None,
                        help="Restrict to an entity name (repeatable)")
    parser.add_argument("--chart", action="append", default=None,
                        help="Chart kind to render instead of the selected set (repeatable)")
    parser.add_argument("--columns", action="store_true",
                        help="List the summarizable fields and exit")
    parser.add_argument("--json", action="store_true",
                        help="Print the result as JSON instead of tables")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show engine log messages")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s %(message)s",
    )

    if args.columns or args.field is None:
        display_columns()
        return
    if args.percentage_base is None:
        parser.error("--percentage-base is required with --field")

    data_path = args.data or AppConfig.from_env().data_path
    if not data_path.exists():
        print(f"ERROR: Entity data not found: {data_path}")
        sys.exit(1)

    try:
        options = ViewOptions.from_dict({
            "percentage_base": args.percentage_base,
            "display_count": args.top,
            "include_overflow_bucket": not args.no_overflow,
            "department_filter": args.dept,
            "classification_filter": args.cfo_act,
            "year_filter": args.years,
            "selected_entity_names": args.entity,
            "chart_kinds": args.chart,
        })
    except ValueError as exc:
        parser.error(str(exc))

    store = JsonEntityStore(data_path)
    result = generate_from_store(store, args.entity_type, args.field, options)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        display_result(result)
    if not result.success:
        sys.exit(2)


if __name__ == "__main__":
    main()
