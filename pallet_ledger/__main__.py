"""CLI entry point for Pallet Ledger.

Usage:
    # Per-lot profit table
    python -m pallet_ledger lots --snapshot export.json
    python -m pallet_ledger lots --snapshot export.json --include-unsellable

    # Mileage deduction, current year by default
    python -m pallet_ledger mileage --snapshot export.json --year 2025

    # Items listed too long without a sale
    python -m pallet_ledger stale --snapshot export.json --threshold 45

    # Profit & loss for a period preset
    python -m pallet_ledger report --snapshot export.json --preset last_quarter

The snapshot is a JSON document with "lots", "items", "expenses" and
"trips" arrays. Malformed records are skipped with a warning.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .aging import stale_items
from .clock import system_clock
from .config import get_settings
from .lots import LotAggregator
from .mileage import ytd_summary
from .models import DatePreset, Lot, Snapshot, coerce_records
from .periods import describe_range, get_date_range_from_preset
from .reports import calculate_profit_loss


def _load_snapshot(path_str: str) -> Snapshot:
    path = Path(path_str)
    if not path.exists():
        print(f"Error: Snapshot not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        return Snapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        print(f"Error: Invalid snapshot {path}: {e.errors()[0]['msg']}", file=sys.stderr)
        sys.exit(1)


def _cmd_lots(args: argparse.Namespace) -> None:
    """Print profit per lot."""
    snapshot = _load_snapshot(args.snapshot)
    aggregator = LotAggregator(include_unsellable=args.include_unsellable or None)
    lots = {lot.id: lot for lot in coerce_records(Lot, snapshot.lots)}
    results = aggregator.summarize_all(lots.values(), snapshot.items, snapshot.expenses)

    if not results:
        print("No lots.")
        return

    print(f"{'Lot':<30} {'Revenue':>12} {'Cost':>12} {'Profit':>12} {'ROI':>8}  Sold")
    for lot_id, result in sorted(
        results.items(), key=lambda kv: kv[1].net_profit, reverse=True
    ):
        name = lots[lot_id].name or lot_id
        print(
            f"{name[:30]:<30} "
            f"${result.total_revenue:>11,.2f} "
            f"${result.total_cost:>11,.2f} "
            f"{result.as_profit_result().profit_display:>12} "
            f"{result.as_profit_result().roi_display:>8}  "
            f"{result.sold_items_count}/{result.total_items_count}"
        )


def _cmd_mileage(args: argparse.Namespace) -> None:
    snapshot = _load_snapshot(args.snapshot)
    year = args.year or system_clock().year
    result = ytd_summary(snapshot.trips, year=year)
    print(f"Mileage {year}: {result.trip_count} trip(s)")
    print(f"  Miles:     {result.total_miles:,.1f}")
    print(f"  Avg rate:  ${result.average_rate:.3f}/mi")
    print(f"  Deduction: {result.deduction_display}")


def _cmd_stale(args: argparse.Namespace) -> None:
    snapshot = _load_snapshot(args.snapshot)
    stale = stale_items(snapshot.items, snapshot.lots, threshold_days=args.threshold)
    if not stale:
        print("No stale items.")
        return

    print(f"--- Stale items ({len(stale)}) ---")
    for entry in stale[:50]:
        price = f"${entry.listing_price:,.2f}" if entry.listing_price is not None else "-"
        lot = entry.lot_name or entry.lot_id
        print(f"  {entry.days_listed:>4}d  {entry.name[:35]:<35} {price:>10}  ({lot})")
    if len(stale) > 50:
        print(f"  ... and {len(stale) - 50} more")


def _cmd_report(args: argparse.Namespace) -> None:
    snapshot = _load_snapshot(args.snapshot)
    date_range = get_date_range_from_preset(args.preset)
    pnl = calculate_profit_loss(
        snapshot.lots,
        snapshot.items,
        snapshot.expenses,
        snapshot.trips,
        date_range=date_range,
    )

    print(f"Profit & Loss: {describe_range(date_range)}")
    print(f"  Gross sales:        ${pnl.gross_sales:>12,.2f}  ({pnl.items_sold} items)")
    print(f"  Cost of goods sold: ${pnl.cost_of_goods_sold:>12,.2f}")
    print(f"  Gross profit:       ${pnl.gross_profit:>12,.2f}  ({pnl.gross_margin:.1f}%)")
    print(f"  Selling expenses:   ${pnl.selling_expenses.total:>12,.2f}")
    for platform in pnl.platform_breakdown:
        print(f"    {platform.label:<16} ${platform.sales:>12,.2f}  ({platform.count})")
    for category in pnl.operating_expenses:
        print(f"    {category.label:<16} ${category.amount:>12,.2f}  ({category.count})")
    print(f"  Mileage deduction:  ${pnl.mileage.total_deduction:>12,.2f}")
    print(f"  Net profit:         ${pnl.net_profit:>12,.2f}  ({pnl.net_margin:.1f}%)")


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="pallet_ledger",
        description="Profit and deduction reports for resale inventory",
    )
    subparsers = parser.add_subparsers(dest="command")

    lots_parser = subparsers.add_parser("lots", help="Profit per lot")
    lots_parser.add_argument("--snapshot", required=True, help="Snapshot JSON file")
    lots_parser.add_argument(
        "--include-unsellable",
        action="store_true",
        help="Give unsellable items a share of the lot cost",
    )

    mileage_parser = subparsers.add_parser("mileage", help="Mileage deduction")
    mileage_parser.add_argument("--snapshot", required=True, help="Snapshot JSON file")
    mileage_parser.add_argument("--year", type=int, default=None, help="Calendar year")

    stale_parser = subparsers.add_parser("stale", help="Stale inventory")
    stale_parser.add_argument("--snapshot", required=True, help="Snapshot JSON file")
    stale_parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help=f"Days listed (default: {settings.stale_threshold_days})",
    )

    report_parser = subparsers.add_parser("report", help="Profit & loss")
    report_parser.add_argument("--snapshot", required=True, help="Snapshot JSON file")
    report_parser.add_argument(
        "--preset",
        default=DatePreset.THIS_YEAR.value,
        choices=[p.value for p in DatePreset],
        help="Reporting period (default: this_year)",
    )

    args = parser.parse_args(argv)

    commands = {
        "lots": _cmd_lots,
        "mileage": _cmd_mileage,
        "stale": _cmd_stale,
        "report": _cmd_report,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    commands[args.command](args)


if __name__ == "__main__":
    main()
