"""
Bank-style compliance pass over rehash candidates.
Stricter than, and independent of, the lender limits used during search. Never re-ranks:
valid deals keep their incoming order.
"""
from __future__ import annotations

from typing import Iterable

from schemas.compliance import BankRules, ComplianceResult, RejectedDeal
from schemas.deal import DealCandidate

HIGH_MILEAGE_THRESHOLD = 100_000
HIGH_LTV_THRESHOLD = 110

LTV_CAPS: dict[str, float] = {
    "prime": 130,
    "near_prime": 125,
    "subprime": 120,
    "deep_subprime": 115,
}
DEFAULT_LTV_CAP = 120

PTI_LIMITS: dict[str, float] = {
    "prime": 0.12,
    "near_prime": 0.15,
    "subprime": 0.18,
    "deep_subprime": 0.25,
}


def determine_bank_rules(vehicle_mileage: int, ltv_percent: float, credit_tier: str) -> BankRules:
    return BankRules(
        ltv_cap=LTV_CAPS.get(credit_tier, DEFAULT_LTV_CAP),
        mandatory_vsc=vehicle_mileage > HIGH_MILEAGE_THRESHOLD,
        mandatory_gap=ltv_percent > HIGH_LTV_THRESHOLD,
        max_payment_to_income=PTI_LIMITS.get(credit_tier),
    )


def deal_violations(deal: DealCandidate, rules: BankRules) -> list[str]:
    violations: list[str] = []
    if deal.ltv > rules.ltv_cap:
        violations.append(f"LTV {deal.ltv:.0f}% exceeds cap of {rules.ltv_cap:g}%")
    if rules.mandatory_vsc and not deal.has_vsc:
        violations.append("Mandatory VSC missing (high mileage vehicle)")
    if rules.mandatory_gap and not deal.has_gap:
        violations.append("Mandatory GAP missing (negative equity)")
    if rules.max_payment_to_income and deal.pti_percent:
        limit = rules.max_payment_to_income * 100
        if deal.pti_percent > limit:
            violations.append(f"PTI {deal.pti_percent:.0f}% exceeds limit of {limit:.0f}%")
    return violations


def filter_compliant_deals(deals: Iterable[DealCandidate], rules: BankRules) -> ComplianceResult:
    valid: list[DealCandidate] = []
    rejected: list[RejectedDeal] = []
    for deal in deals:
        violations = deal_violations(deal, rules)
        if violations:
            rejected.append(RejectedDeal(deal=deal, violations=violations))
        else:
            valid.append(deal)
    return ComplianceResult(valid_deals=valid, rejected_deals=rejected)


def mandatory_products(rules: BankRules) -> list[str]:
    products = []
    if rules.mandatory_vsc:
        products.append("VSC")
    if rules.mandatory_gap:
        products.append("GAP")
    return products


def describe_bank_rules(rules: BankRules) -> list[str]:
    """Short rule strings for the advisory prompt."""
    out = [f"LTV cap {rules.ltv_cap:g}%"]
    out.extend(f"{p} mandatory" for p in mandatory_products(rules))
    if rules.max_payment_to_income is not None:
        out.append(f"Max PTI {rules.max_payment_to_income * 100:.0f}%")
    return out
