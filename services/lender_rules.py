"""
Evaluates a lender's deal-validation rules against a (possibly modified) deal.
Returns pass/fail plus every failing reason; nothing is short-circuited.
"""
from __future__ import annotations

from schemas.deal import DealInput
from schemas.lender import LenderConfig


def validate_deal(lender: LenderConfig, deal: DealInput, amount_financed: float) -> tuple[bool, list[str]]:
    rules = lender.validation
    if rules is None:
        return True, []

    reasons: list[str] = []
    label = rules.label
    if rules.min_down_payment is not None and deal.down_payment < rules.min_down_payment:
        reasons.append(f"{label} requires at least ${rules.min_down_payment:,.0f} down payment")
    if rules.min_amount_financed is not None and amount_financed < rules.min_amount_financed:
        reasons.append(f"Below {label} minimum amount financed (${rules.min_amount_financed:,.0f})")
    if rules.max_amount_financed is not None and amount_financed > rules.max_amount_financed:
        reasons.append(f"Above {label} maximum amount financed (${rules.max_amount_financed:,.0f})")
    if (
        rules.min_down_percent_of_price is not None
        and deal.down_payment < deal.vehicle_price * rules.min_down_percent_of_price
    ):
        reasons.append(f"Down payment below {rules.min_down_percent_of_price * 100:.0f}% minimum for {label}")
    return not reasons, reasons
