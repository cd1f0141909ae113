"""
Amortization, amount financed and payment-to-income (PTI) checks.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence

from schemas.deal import DealInput, PtiResult

# Max PTI (payment / gross monthly income) by credit tier
PTI_LIMITS: dict[str, float] = {
    "deep_subprime": 0.25,
    "subprime": 0.18,
    "near_prime": 0.15,
    "prime": 0.12,
}


def monthly_payment(amount_financed: float, apr: float, term_months: int) -> float:
    """Fixed payment: (r * P) / (1 - (1 + r)^-n), r = APR/100/12; P/n when r is 0."""
    rate = apr / 100 / 12
    if rate == 0:
        return amount_financed / term_months
    return (rate * amount_financed) / (1 - math.pow(1 + rate, -term_months))


def amount_financed(deal: DealInput, backend_total: float = 0.0) -> float:
    gross = deal.vehicle_price + deal.vehicle_price * deal.tax_rate + deal.fees + backend_total
    return max(gross - deal.total_down, 0.0)


def pti_limit(credit_tier: str) -> float:
    return PTI_LIMITS.get(credit_tier, PTI_LIMITS["subprime"])


def required_income(payment: float, limit: float) -> float:
    if limit <= 0:
        return 0.0
    return payment / limit


def evaluate_pti(payment: float, monthly_income: Optional[float], credit_tier: str) -> PtiResult:
    """
    PTI for a payment. Required income is always reported; the percent is None when
    income is missing, and a warning is produced only when the tier limit is exceeded.
    """
    limit = pti_limit(credit_tier)
    needed = required_income(payment, limit)

    if not monthly_income or monthly_income <= 0:
        return PtiResult(required_income=math.ceil(needed))

    pti = payment / monthly_income
    exceeds = pti > limit
    warning = None
    if exceeds:
        tier_label = credit_tier.replace("_", " ")
        warning = (
            f"High PTI ({pti * 100:.0f}%). Max {limit * 100:.0f}% for {tier_label}. "
            f"Requires income of ${needed:,.0f}+"
        )
    return PtiResult(
        pti_percent=pti * 100,
        pti_warning=warning,
        pti_exceeds_limit=exceeds,
        required_income=math.ceil(needed),
    )


def choose_term_for_budget(
    *,
    price: float,
    down: float,
    apr: float,
    tax_rate: float,
    fees: float,
    target_monthly: float,
    tolerance: float,
    terms: Sequence[int],
) -> Optional[tuple[int, float]]:
    """First term (in the given order) whose payment fits target + tolerance, as (term, payment)."""
    principal = max(price + price * tax_rate + fees - down, 0.0)
    for term in terms:
        payment = monthly_payment(principal, apr, term)
        if payment <= target_monthly + tolerance:
            return term, payment
    return None
