"""
Deal risk: composite risk score, per-deal risk assessment (LTV, warranty, product
recommendations) and per-lender vehicle eligibility with advance multipliers.
"""
from __future__ import annotations

from schemas.deal import DealInput, RiskAssessment, VehicleEligibilityResult
from schemas.lender import LenderConfig
from services.payment import amount_financed
from services.valuation import book_value, ltv_percent, vehicle_age

TIER_SCORE_ADJUSTMENTS: dict[str, int] = {
    "prime": 30,
    "near_prime": 15,
    "subprime": 0,
    "deep_subprime": -20,
}
PREFERRED_MAKES = {"toyota", "honda", "lexus", "subaru"}
RISKY_MAKES = {"kia", "hyundai", "nissan", "dodge"}

# Factory warranty: 3 years / 36,000 miles
WARRANTY_AGE_THRESHOLD = 3
WARRANTY_MILEAGE_THRESHOLD = 36_000

THEFT_RISK_MAKES = ("kia", "hyundai")
THEFT_RISK_YEAR_START = 2011
THEFT_RISK_YEAR_END = 2021
THEFT_RISK_MULTIPLIER = 0.90


def risk_score(deal: DealInput, as_of_year: int) -> int:
    """Composite score in [0, 100]; higher is safer."""
    score = 50
    score += TIER_SCORE_ADJUSTMENTS.get(deal.customer_credit_tier, 0)

    down_pct = deal.down_payment / deal.vehicle_price if deal.vehicle_price > 0 else 0.0
    if down_pct >= 0.20:
        score += 15
    elif down_pct >= 0.15:
        score += 10
    elif down_pct >= 0.10:
        score += 5

    age = vehicle_age(deal.vehicle_year, as_of_year)
    if age > 10:
        score -= 15
    elif age > 7:
        score -= 10
    elif age > 5:
        score -= 5

    if deal.vehicle_mileage > 150_000:
        score -= 15
    elif deal.vehicle_mileage > 120_000:
        score -= 10
    elif deal.vehicle_mileage > 90_000:
        score -= 5

    make = deal.vehicle_make.strip().lower()
    if make in PREFERRED_MAKES:
        score += 10
    if make in RISKY_MAKES:
        score -= 10

    return max(0, min(100, score))


def assess_risk(deal: DealInput, as_of_year: int) -> RiskAssessment:
    age = vehicle_age(deal.vehicle_year, as_of_year)
    book = book_value(deal.vehicle_price, age, deal.vehicle_mileage)

    # Preliminary LTV excludes backend products
    preliminary = amount_financed(deal)
    ltv = ltv_percent(preliminary, book)
    upside_down = ltv > 100

    over_age = age > WARRANTY_AGE_THRESHOLD
    over_mileage = deal.vehicle_mileage > WARRANTY_MILEAGE_THRESHOLD
    reason = None
    if over_age and over_mileage:
        reason = "both"
    elif over_age:
        reason = "age"
    elif over_mileage:
        reason = "mileage"

    return RiskAssessment(
        book_value=book,
        ltv_percent=ltv,
        is_upside_down=upside_down,
        is_out_of_warranty=over_age or over_mileage,
        out_of_warranty_reason=reason,
        vehicle_age_years=age,
        vehicle_mileage=deal.vehicle_mileage,
        recommend_gap=upside_down,
        recommend_vsc=over_age or over_mileage,
    )


def vehicle_eligibility(deal: DealInput, lender: LenderConfig, as_of_year: int) -> VehicleEligibilityResult:
    """
    Match a deal's vehicle against one lender's restrictions and preferences.

    Every rejection reason is collected. The advance multiplier is the minimum over all
    matching preferences. Kia/Hyundai theft-risk years get a default 0.90 only when no
    year-ranged lender preference covers the vehicle and the multiplier is still neutral.
    """
    age = vehicle_age(deal.vehicle_year, as_of_year)
    make = deal.vehicle_make.strip()
    make_lower = make.lower()
    restrictions = lender.vehicle_restrictions

    reasons: list[str] = []
    warnings: list[str] = []
    multiplier = 1.0

    if age > restrictions.max_age:
        reasons.append(f"Vehicle too old: {age} years (max {restrictions.max_age} years for {lender.name})")
    if deal.vehicle_mileage > restrictions.max_mileage:
        reasons.append(
            f"Mileage too high: {deal.vehicle_mileage:,} mi "
            f"(max {restrictions.max_mileage:,} mi for {lender.name})"
        )
    if any(excluded.lower() == make_lower for excluded in restrictions.excluded_makes):
        reasons.append(f"{make} not eligible with {lender.name}")

    for pref in lender.vehicle_preferences:
        if not pref.applies_to(make, deal.vehicle_year):
            continue
        multiplier = min(multiplier, pref.multiplier)
        if pref.multiplier < 1.0:
            pct = (1 - pref.multiplier) * 100
            warnings.append(f"{pref.reason or 'Risk Adjustment'}: {make} {deal.vehicle_year} (-{pct:.0f}% advance)")
        elif pref.multiplier > 1.0:
            pct = (pref.multiplier - 1) * 100
            warnings.append(f"{pref.reason or 'Preferred Make'}: {make} (+{pct:.0f}% advance)")

    theft_make = make_lower in THEFT_RISK_MAKES
    theft_year = THEFT_RISK_YEAR_START <= deal.vehicle_year <= THEFT_RISK_YEAR_END
    if theft_make and theft_year:
        covered = any(
            p.make.lower() == make_lower and p.year_range is not None and p.year_range.contains(deal.vehicle_year)
            for p in lender.vehicle_preferences
        )
        # A bonus preference also leaves the multiplier != 1.0 and suppresses this penalty.
        if not covered and multiplier == 1.0:
            multiplier = THEFT_RISK_MULTIPLIER
            warnings.append(
                f"Theft Risk: {make} {deal.vehicle_year} "
                f"({THEFT_RISK_YEAR_START}-{THEFT_RISK_YEAR_END} models lack immobilizers)"
            )

    return VehicleEligibilityResult(
        is_eligible=not reasons,
        reasons=reasons,
        advance_multiplier=multiplier,
        warnings=warnings,
    )
