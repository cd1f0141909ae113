"""
Advance calculators and net check / dealer profit.
Run from project root: python -m pytest tests/test_advance.py -v
"""
import unittest

from services.advance import (
    ADVANCE_CALCULATORS,
    AdvanceContext,
    estimate_net_check_and_profit,
    net_advance,
    payment_multiplier,
)
from services.lender_catalog import get_lender, load_default_lenders
from tests.factories import AS_OF_YEAR, make_deal, make_lender


def _ctx(lender, deal, amount_financed, book_value=10_000.0, vehicle_multiplier=1.0):
    return AdvanceContext(
        deal=deal,
        lender=lender,
        tier_row=lender.tier_row(deal.customer_credit_tier),
        amount_financed=amount_financed,
        book_value=book_value,
        vehicle_multiplier=vehicle_multiplier,
        as_of_year=AS_OF_YEAR,
    )


class TestAdvanceCalculators(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.lenders = load_default_lenders()

    def test_every_policy_has_a_calculator(self):
        self.assertEqual(set(ADVANCE_CALCULATORS), {"cost_based", "payment_based", "risk_adjusted", "fallback"})

    def test_cost_based(self):
        """Standard dealer tier 1.08 x cost, less $1,544 flat fees and 2% holdback."""
        lender = get_lender(self.lenders, "westlake")
        deal = make_deal(vehicle_cost=10_000)
        self.assertAlmostEqual(net_advance(_ctx(lender, deal, 20_000)), 10_800 - 1_544 - 216)

    def test_cost_based_capped_by_amount_financed(self):
        lender = get_lender(self.lenders, "westlake")
        deal = make_deal(vehicle_cost=10_000)
        self.assertAlmostEqual(net_advance(_ctx(lender, deal, 5_000)), 5_000 - 1_544 - 100)

    def test_vehicle_multiplier_scales_advance(self):
        lender = get_lender(self.lenders, "westlake")
        deal = make_deal(vehicle_cost=10_000)
        self.assertAlmostEqual(
            net_advance(_ctx(lender, deal, 20_000, vehicle_multiplier=0.9)),
            9_720 - 1_544 - 9_720 * 0.02,
        )

    def test_payment_multiplier_by_tier(self):
        policy = get_lender(self.lenders, "western_funding").advance_policy
        self.assertAlmostEqual(payment_multiplier(policy, "deep_subprime"), 1.20)
        self.assertAlmostEqual(payment_multiplier(policy, "subprime"), 1.325)
        self.assertAlmostEqual(payment_multiplier(policy, "near_prime"), 1.3775)
        self.assertAlmostEqual(payment_multiplier(policy, "prime"), 1.45)

    def test_risk_adjusted(self):
        """Score 50 -> adjustment -0.01 -> 1.09 x cost."""
        lender = get_lender(self.lenders, "uac")
        deal = make_deal(vehicle_cost=10_000, vehicle_year=2023, vehicle_mileage=20_000, down_payment=0)
        self.assertAlmostEqual(net_advance(_ctx(lender, deal, 30_000)), 10_900 - 1_200 - 10_900 * 0.018)

    def test_fallback(self):
        lender = make_lender()
        deal = make_deal(vehicle_cost=10_000)
        # min(12,000, 150% cost, 250% book) less 2% lender fee on amount financed
        self.assertAlmostEqual(net_advance(_ctx(lender, deal, 12_000, book_value=8_000)), 12_000 - 240)

    def test_fallback_capped_by_book_value(self):
        lender = make_lender()
        deal = make_deal(vehicle_cost=10_000)
        self.assertAlmostEqual(net_advance(_ctx(lender, deal, 12_000, book_value=4_000)), 10_000 - 240)


class TestNetCheckAndProfit(unittest.TestCase):
    def test_breakdown(self):
        lender = make_lender(lender_fee_percent=0)
        deal = make_deal(vehicle_price=12_000, vehicle_cost=10_000, fees=500, trade_payoff=1_000,
                         trade_allowance=0, down_payment=2_000)
        result = estimate_net_check_and_profit(_ctx(lender, deal, 11_000), 900)
        self.assertAlmostEqual(result.net_check_to_dealer, 10_000)
        self.assertEqual(result.total_down, 1_000)
        self.assertEqual(result.dealer_front_gross, 2_000)
        self.assertEqual(result.dealer_back_end_gross, 900)
        self.assertAlmostEqual(result.dealer_profit, 10_000 + 1_000 - 10_000 - 500)

    def test_net_check_never_negative(self):
        deal = make_deal(trade_payoff=50_000)
        result = estimate_net_check_and_profit(_ctx(make_lender(), deal, 10_000), 0)
        self.assertEqual(result.net_check_to_dealer, 0.0)


if __name__ == "__main__":
    unittest.main()
