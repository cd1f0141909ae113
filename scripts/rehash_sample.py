"""
Run the rehash engine and compliance filter on a sample deal against the default catalog.
Run: python -m scripts.rehash_sample [--as-of-year 2025] (from the project root).
"""
import argparse
import os
import sys

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schemas.deal import BackendProducts, DealInput
from services.compliance import determine_bank_rules, filter_compliant_deals, mandatory_products
from services.lender_catalog import load_default_lenders
from services.rehash_engine import run_rehash
from utils.logging_config import setup_logging


SAMPLE_DEAL = DealInput(
    vehicle_id="sample-camry",
    vehicle_year=2022,
    vehicle_make="Toyota",
    vehicle_mileage=28_000,
    vehicle_price=21_500,
    vehicle_cost=19_000,
    tax_rate=0.07,
    fees=450,
    down_payment=5_000,
    backend_products=BackendProducts(gap=True, vsc=False),
    customer_credit_tier="near_prime",
    target_payment=450,
    payment_tolerance=50,
    monthly_income=4_800,
)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--as-of-year", type=int, default=None)
    parser.add_argument("--top", type=int, default=5, help="Number of candidates to print")
    args = parser.parse_args()

    setup_logging("INFO", json_output=False)
    lenders = load_default_lenders()
    result = run_rehash(SAMPLE_DEAL, lenders, as_of_year=args.as_of_year)

    risk = result.risk_assessment
    print(f"Book value ${risk.book_value:,.0f}, LTV {risk.ltv_percent:.1f}%, "
          f"GAP recommended: {risk.recommend_gap}, VSC recommended: {risk.recommend_vsc}")
    if not result.best_deal:
        print("No lender can structure this deal.")
        return

    rules = determine_bank_rules(SAMPLE_DEAL.vehicle_mileage, risk.ltv_percent, SAMPLE_DEAL.customer_credit_tier)
    compliance = filter_compliant_deals(result.all_candidates, rules)
    print(f"{len(result.all_candidates)} candidates, {len(compliance.valid_deals)} bank-compliant, "
          f"mandatory products: {', '.join(mandatory_products(rules)) or 'none'}")

    for c in result.all_candidates[: args.top]:
        print(f"  {c.lender_name:<22} {c.term_months}mo  ${c.payment:,.2f}/mo  "
              f"net check ${c.net_check_to_dealer:,.0f}  LTV {c.ltv:.0f}%  [{c.optimization_level}]")
        print(f"    {c.smart_note}")
    for rejected in compliance.rejected_deals[: args.top]:
        print(f"  rejected {rejected.deal.lender_name} {rejected.deal.term_months}mo: "
              f"{'; '.join(rejected.violations)}")


if __name__ == "__main__":
    main()
