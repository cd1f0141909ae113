"""
Lender advance calculators.

Each advance-policy variant maps to a pure function returning the net advance (gross
advance less lender fees). `estimate_net_check_and_profit` dispatches on the policy tag
and derives net check and dealer profit from it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from schemas.deal import DealInput
from schemas.lender import (
    CostBasedPolicy,
    FeeBundle,
    LenderConfig,
    LenderTierPricing,
    PaymentBasedPolicy,
    RiskAdjustedPolicy,
)
from services.risk import risk_score


@dataclass(frozen=True)
class AdvanceContext:
    deal: DealInput
    lender: LenderConfig
    tier_row: LenderTierPricing
    amount_financed: float
    book_value: float
    vehicle_multiplier: float
    as_of_year: int


@dataclass(frozen=True)
class NetCheckBreakdown:
    net_check_to_dealer: float
    dealer_front_gross: float
    dealer_back_end_gross: float
    dealer_profit: float
    total_down: float


def _apply_fee_bundle(gross: float, fees: FeeBundle) -> float:
    return gross - fees.flat_total - gross * fees.holdback_percent


def _cost_based(ctx: AdvanceContext) -> float:
    policy: CostBasedPolicy = ctx.lender.advance_policy
    tier_multiplier = getattr(policy.tier_advances, policy.dealer_tier)
    gross = min(ctx.amount_financed, ctx.deal.vehicle_cost * tier_multiplier * ctx.vehicle_multiplier)
    return _apply_fee_bundle(gross, policy.fees)


def payment_multiplier(policy: PaymentBasedPolicy, credit_tier: str) -> float:
    rng = policy.payment_multiplier_range
    if credit_tier == "deep_subprime":
        return rng.min
    if credit_tier == "subprime":
        return (rng.min + rng.max) / 2
    if credit_tier == "near_prime":
        return rng.max * 0.95
    return rng.max


def _payment_based(ctx: AdvanceContext) -> float:
    policy: PaymentBasedPolicy = ctx.lender.advance_policy
    credit_multiplier = payment_multiplier(policy, ctx.deal.customer_credit_tier)
    gross = min(ctx.amount_financed, ctx.deal.vehicle_cost * credit_multiplier * ctx.vehicle_multiplier)
    return _apply_fee_bundle(gross, policy.fees)


def _risk_adjusted(ctx: AdvanceContext) -> float:
    policy: RiskAdjustedPolicy = ctx.lender.advance_policy
    score = risk_score(ctx.deal, ctx.as_of_year)
    rng = policy.risk_adjustment_range
    adjustment = rng.min + (score / 100) * (rng.max - rng.min)
    gross = min(
        ctx.amount_financed,
        ctx.deal.vehicle_cost * (policy.base_advance + adjustment) * ctx.vehicle_multiplier,
    )
    return _apply_fee_bundle(gross, policy.fees)


def fallback_gross_advance(ctx: AdvanceContext) -> float:
    by_cost = ctx.tier_row.max_advance_percent / 100 * ctx.deal.vehicle_cost * ctx.vehicle_multiplier
    by_ltv = ctx.tier_row.max_ltv_percent / 100 * ctx.book_value * ctx.vehicle_multiplier
    return min(ctx.amount_financed, by_cost, by_ltv)


def _fallback(ctx: AdvanceContext) -> float:
    lender_fee = ctx.lender.lender_fee_percent / 100 * ctx.amount_financed
    return fallback_gross_advance(ctx) - lender_fee


ADVANCE_CALCULATORS: dict[str, Callable[[AdvanceContext], float]] = {
    "cost_based": _cost_based,
    "payment_based": _payment_based,
    "risk_adjusted": _risk_adjusted,
    "fallback": _fallback,
}


def net_advance(ctx: AdvanceContext) -> float:
    return ADVANCE_CALCULATORS[ctx.lender.advance_policy.type](ctx)


def estimate_net_check_and_profit(ctx: AdvanceContext, backend_total: float) -> NetCheckBreakdown:
    deal = ctx.deal
    net_check = max(net_advance(ctx) - deal.trade_payoff, 0.0)
    total_down = deal.total_down
    return NetCheckBreakdown(
        net_check_to_dealer=net_check,
        dealer_front_gross=deal.vehicle_price - deal.vehicle_cost,
        dealer_back_end_gross=backend_total,
        dealer_profit=net_check + total_down - deal.vehicle_cost - deal.fees,
        total_down=total_down,
    )
