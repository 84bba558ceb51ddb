"""
Calculate commissions for a deal file without a database.

Usage:
    python scripts/calculate_deal.py deal.json
    python scripts/calculate_deal.py deal.json --catalog catalog.json --preview
    python scripts/calculate_deal.py deal.json --as-of 2023-05-15

deal.json holds a DealInput:
    {"deal_id": "D-1", "unit_price": 300000, "project_id": "P-1",
     "developer_id": "DEV-1",
     "agents": [{"id": "a1", "name": "Jane", "account_type": "standard", "commission": 10}]}

Without --catalog the built-in catalog for the run year is used.
"""

import argparse
import logging
import os
import sys
from datetime import date, datetime, time
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.config import settings
from src.schemas.commission import DealInput
from src.services.catalog import default_catalog, load_catalog_file
from src.services.commission import CommissionEngine
from src.utils.clock import FrozenClock, utc_now


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Calculate deal commissions")
    parser.add_argument("deal", type=Path, help="DealInput JSON file")
    parser.add_argument("--catalog", type=Path, help="Catalog JSON file")
    parser.add_argument("--strict", action="store_true", help="Reject overlapping catalogs")
    parser.add_argument("--preview", action="store_true", help="Include inlined statements")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        help="Run date YYYY-MM-DD (defaults to today, UTC)",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    deal = DealInput.model_validate_json(args.deal.read_text(encoding="utf-8"))
    if args.catalog:
        catalog = load_catalog_file(args.catalog, strict=args.strict)
    else:
        catalog = default_catalog(args.as_of.year if args.as_of else None)

    clock = FrozenClock(datetime.combine(args.as_of, time())) if args.as_of else utc_now
    engine = CommissionEngine(
        catalog,
        clock=clock,
        policy_type=settings.policy_type,
        price_scale=settings.price_scale,
    )
    result = engine.calculate(deal, preview=args.preview)
    print(result.model_dump_json(indent=2))

    return 1 if result.validation_errors else 0


if __name__ == "__main__":
    sys.exit(main())
