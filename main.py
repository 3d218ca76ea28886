"""Playset Configurator — design check entry point.

Re-validates and re-prices a saved design file against a catalog file,
the same check quote intake performs on a submitted design.

    python main.py design.json --catalog catalog.json --city "Cape Town"
"""
import argparse
import json
import logging
import sqlite3
import sys

from playset.core.catalog_repository import CatalogRepository
from playset.core.exceptions import PersistenceError
from playset.core.metadata import refresh_metadata
from playset.core.pricing_engine import format_price, pricing_breakdown, validate_pricing
from playset.core.serializers import pricing_to_dict, validation_result_to_dict
from playset.core.validation_engine import ValidationEngine
from playset.database.db_manager import DatabaseManager
from playset.database.design_repository import DesignRepository
from playset.export.json_export import DesignFileExporter
from playset.models.config import PricingRates, ValidationLimits
from playset.models.pricing import LocationInfo

logger = logging.getLogger("playset")


def _print_report(design, result, pricing) -> None:
    print(f"Design: {design.name} ({design.metadata.instance_count} parts)")
    dims = design.metadata.dimensions
    print(f"Size:   {dims.width:g} x {dims.depth:g} x {dims.height:g} {dims.unit}")
    print(f"Weight: {design.metadata.estimated_weight:g} kg")
    print()
    status = "VALID" if result.is_valid else "INVALID"
    print(f"Validation: {status} ({len(result.errors)} errors, {len(result.warnings)} warnings)")
    for issue in (*result.errors, *result.warnings):
        print(f"  [{issue.severity.value}] {issue.message}")
        if issue.suggestion:
            print(f"      -> {issue.suggestion}")
    print()
    for line in pricing.components:
        print(f"  {line.quantity} x {line.name:<30} {format_price(line.total_price):>14}")
    print(f"  {'Subtotal':<34} {format_price(pricing.subtotal):>14}")
    print(f"  {'Shipping':<34} {format_price(pricing.shipping.total):>14}")
    if pricing.installation is not None:
        label = f"Installation (x{pricing.installation.complexity_multiplier:g})"
        print(f"  {label:<34} {format_price(pricing.installation.total):>14}")
    print(f"  {'Total':<34} {format_price(pricing.total):>14}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate and price a playset design file"
    )
    parser.add_argument("design", type=str, help="Design file (.json)")
    parser.add_argument(
        "--catalog", required=True, type=str,
        help="Catalog feed (.json list or {\"parts\": [...]})",
    )
    parser.add_argument("--city", type=str, default="", help="Delivery city")
    parser.add_argument("--state", type=str, default="", help="Delivery state/province")
    parser.add_argument("--postal-code", type=str, default="", help="Delivery postal code")
    parser.add_argument(
        "--install", action="store_true", help="Include installation estimate",
    )
    parser.add_argument(
        "--db", type=str, default=None,
        help="Database holding pricing/validation overrides",
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON report")
    parser.add_argument("-v", "--verbose", action="store_true", help="DEBUG logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    rates, limits = PricingRates(), ValidationLimits()
    try:
        if args.db:
            with DatabaseManager(args.db) as db:
                db.initialize_database()
                repo = DesignRepository(db)
                rates, limits = repo.load_pricing_rates(), repo.load_validation_limits()
        catalog = CatalogRepository.from_json_file(args.catalog)
        design = DesignFileExporter().import_design(args.design)
    except (OSError, KeyError, TypeError, ValueError, PersistenceError, sqlite3.Error) as e:
        logger.error("Cannot read input: %s", e)
        return 2

    refresh_metadata(design, catalog)
    result = ValidationEngine(catalog, limits).validate(design)
    location = LocationInfo(args.city, args.state, args.postal_code)
    pricing = pricing_breakdown(design, catalog, location, args.install, rates)
    for problem in validate_pricing(pricing):
        logger.warning("Pricing check: %s", problem)

    if args.json:
        report = {
            "design": design.name,
            "validation": validation_result_to_dict(result),
            "pricing": pricing_to_dict(pricing),
        }
        print(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        _print_report(design, result, pricing)
    return 0 if result.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
