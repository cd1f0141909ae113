"""
Rehash engine: searches lender x term x down-payment bump x backend scenario for the
deal structure with the highest net check to the dealer, subject to every lender's
underwriting constraints.

Pure function of (deal, lenders, as_of_year). The lender list is passed in explicitly;
deal variations are copies, never in-place mutation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from schemas.deal import (
    DealCandidate,
    DealInput,
    OptimizationLevel,
    RehashResult,
    RiskAssessment,
    VehicleEligibilityResult,
)
from schemas.lender import LenderConfig, LenderTierPricing
from services.advance import AdvanceContext, estimate_net_check_and_profit
from services.lender_rules import validate_deal
from services.payment import amount_financed, evaluate_pti, monthly_payment
from services.risk import assess_risk, vehicle_eligibility
from services.valuation import book_value, ltv_percent, resolve_year, vehicle_age

logger = logging.getLogger(__name__)

GAP_PRICE = 900.0
VSC_PRICE = 1_800.0
DOWN_PAYMENT_BUMPS = (0.0, 500.0, 1_000.0)
UNDEFINED_BACKEND_PERCENT = 999.0


@dataclass(frozen=True)
class BackendScenario:
    label: str
    value: float
    has_gap: bool
    has_vsc: bool
    optimization_level: OptimizationLevel


def _optimal_products(deal: DealInput, risk: RiskAssessment) -> tuple[bool, bool]:
    gap = risk.recommend_gap or deal.backend_products.gap
    vsc = risk.recommend_vsc or deal.backend_products.vsc
    return gap, vsc


def _optimal_scenario(deal: DealInput, risk: RiskAssessment, lender: LenderConfig) -> Optional[BackendScenario]:
    gap, vsc = _optimal_products(deal, risk)
    total = (GAP_PRICE if gap else 0.0) + (VSC_PRICE if vsc else 0.0) + deal.backend_products.other_products_total
    return BackendScenario("Optimal Coverage", min(total, lender.max_backend_total), gap, vsc, "optimal")


def _vsc_stripped_scenario(deal: DealInput, risk: RiskAssessment, lender: LenderConfig) -> Optional[BackendScenario]:
    gap, vsc = _optimal_products(deal, risk)
    if not vsc:
        return None
    total = (GAP_PRICE if gap else 0.0) + deal.backend_products.other_products_total
    return BackendScenario("GAP Only", min(total, lender.max_backend_total), gap, False, "vsc_stripped")


def _all_stripped_scenario(deal: DealInput, risk: RiskAssessment, lender: LenderConfig) -> Optional[BackendScenario]:
    return BackendScenario("No Products", deal.backend_products.other_products_total, False, False, "all_stripped")


# Forward-only: optimal -> vsc_stripped -> all_stripped
SCENARIO_BUILDERS: tuple[Callable[[DealInput, RiskAssessment, LenderConfig], Optional[BackendScenario]], ...] = (
    _optimal_scenario,
    _vsc_stripped_scenario,
    _all_stripped_scenario,
)


def build_backend_scenarios(deal: DealInput, risk: RiskAssessment, lender: LenderConfig) -> list[BackendScenario]:
    scenarios = (build(deal, risk, lender) for build in SCENARIO_BUILDERS)
    return [s for s in scenarios if s is not None]


def generate_smart_note(
    has_gap: bool,
    has_vsc: bool,
    risk: RiskAssessment,
    optimization_level: OptimizationLevel,
) -> str:
    """Explain the product decision for a scenario."""
    notes: list[str] = []

    if optimization_level == "optimal":
        if has_gap and risk.is_upside_down:
            notes.append(f"Added GAP due to high LTV ({risk.ltv_percent:.0f}%)")
        if has_vsc and risk.is_out_of_warranty:
            if risk.out_of_warranty_reason == "mileage":
                notes.append(f"Added VSC due to high mileage ({risk.vehicle_mileage:,} mi)")
            elif risk.out_of_warranty_reason == "age":
                notes.append(f"Added VSC due to vehicle age ({risk.vehicle_age_years} years old)")
            elif risk.out_of_warranty_reason == "both":
                notes.append(
                    f"Added VSC - vehicle out of warranty "
                    f"({risk.vehicle_age_years}yr, {risk.vehicle_mileage:,}mi)"
                )
        if has_gap and not risk.is_upside_down:
            notes.append("GAP included for maximum protection")
        if has_vsc and not risk.is_out_of_warranty:
            notes.append("VSC included for extended coverage")
    elif optimization_level == "vsc_stripped":
        notes.append("Removed VSC to meet payment target")
        if has_gap:
            notes.append("GAP retained for negative equity protection")
    elif optimization_level == "all_stripped":
        notes.append("Products removed to meet lender/payment requirements")

    if not notes:
        if not has_gap and not has_vsc:
            notes.append("No products - maximizing approval odds")
        else:
            notes.append("Optimal product coverage included")

    return ". ".join(notes)


def _adjustments(
    lender: LenderConfig,
    term: int,
    apr: float,
    base_down: float,
    down: float,
    scenario: BackendScenario,
    eligibility: VehicleEligibilityResult,
) -> list[str]:
    out = [f"{lender.name}: {term} months @ {apr:.2f}% APR"]
    if down != base_down:
        out.append(f"Increased down from ${base_down:.0f} to ${down:.0f}")

    products = [name for name, included in (("GAP", scenario.has_gap), ("VSC", scenario.has_vsc)) if included]
    if products:
        out.append(f"Products: {' + '.join(products)} (${scenario.value:.0f})")
    else:
        out.append("No products - lean structure")

    multiplier = eligibility.advance_multiplier
    if multiplier < 1.0:
        out.append(f"Advance reduced by {(1 - multiplier) * 100:.0f}% (vehicle risk)")
    elif multiplier > 1.0:
        out.append(f"Advance increased by {(multiplier - 1) * 100:.0f}% (preferred vehicle)")
    return out


def _lender_candidates(
    deal: DealInput,
    lender: LenderConfig,
    risk: RiskAssessment,
    as_of_year: int,
) -> list[DealCandidate]:
    eligibility = vehicle_eligibility(deal, lender, as_of_year)
    if not eligibility.is_eligible:
        logger.debug("Lender %s skipped: %s", lender.id, "; ".join(eligibility.reasons))
        return []

    age = vehicle_age(deal.vehicle_year, as_of_year)
    if age > lender.max_vehicle_age_years or deal.vehicle_mileage > lender.max_miles:
        return []

    tier_row: Optional[LenderTierPricing] = lender.tier_row(deal.customer_credit_tier)
    if tier_row is None:
        return []
    apr = tier_row.mid_apr

    book = book_value(deal.vehicle_price, age, deal.vehicle_mileage)
    scenarios = build_backend_scenarios(deal, risk, lender)
    candidates: list[DealCandidate] = []

    for term in lender.allowed_terms:
        for bump in DOWN_PAYMENT_BUMPS:
            down = deal.down_payment + bump
            modified = deal.model_copy(update={"down_payment": down})
            for scenario in scenarios:
                financed = amount_financed(modified, scenario.value)
                if financed < lender.min_amount_financed or financed > lender.max_amount_financed:
                    continue

                backend_pct = scenario.value / financed * 100 if financed > 0 else UNDEFINED_BACKEND_PERCENT
                if backend_pct > lender.max_backend_percent_of_amount:
                    continue

                is_valid, reasons = validate_deal(lender, modified, financed)
                if not is_valid:
                    continue

                ltv = ltv_percent(financed, book)
                if ltv > tier_row.max_ltv_percent:
                    continue

                payment = monthly_payment(financed, apr, term)
                breakdown = estimate_net_check_and_profit(
                    AdvanceContext(
                        deal=modified,
                        lender=lender,
                        tier_row=tier_row,
                        amount_financed=financed,
                        book_value=book,
                        vehicle_multiplier=eligibility.advance_multiplier,
                        as_of_year=as_of_year,
                    ),
                    scenario.value,
                )
                logger.debug(
                    "%s: book value $%.0f (vs retail $%.0f), LTV %.1f%%, net check $%.0f",
                    lender.name, book, deal.vehicle_price, ltv, breakdown.net_check_to_dealer,
                )

                adjustments = _adjustments(lender, term, apr, deal.down_payment, down, scenario, eligibility)
                smart_note = generate_smart_note(scenario.has_gap, scenario.has_vsc, risk, scenario.optimization_level)
                if eligibility.warnings:
                    smart_note += ". " + ". ".join(eligibility.warnings)

                pti = evaluate_pti(payment, deal.monthly_income, deal.customer_credit_tier)
                if pti.pti_exceeds_limit and pti.pti_warning:
                    adjustments.append(pti.pti_warning)

                candidates.append(
                    DealCandidate(
                        lender_id=lender.id,
                        lender_name=lender.name,
                        term_months=term,
                        apr=apr,
                        amount_financed=financed,
                        payment=payment,
                        net_check_to_dealer=breakdown.net_check_to_dealer,
                        dealer_front_gross=breakdown.dealer_front_gross,
                        dealer_back_end_gross=breakdown.dealer_back_end_gross,
                        dealer_profit=breakdown.dealer_profit,
                        total_down=breakdown.total_down,
                        backend_total=scenario.value,
                        ltv=ltv,
                        reasons=reasons,
                        adjustments=adjustments,
                        has_gap=scenario.has_gap,
                        has_vsc=scenario.has_vsc,
                        smart_note=smart_note,
                        risk_assessment=risk,
                        optimization_level=scenario.optimization_level,
                        vehicle_warnings=eligibility.warnings,
                        advance_multiplier=eligibility.advance_multiplier,
                        pti_percent=pti.pti_percent,
                        pti_warning=pti.pti_warning,
                        pti_exceeds_limit=pti.pti_exceeds_limit,
                        required_income=pti.required_income,
                    )
                )
    return candidates


def rank_candidates(
    candidates: Sequence[DealCandidate],
    target_payment: float,
    payment_tolerance: float,
) -> list[DealCandidate]:
    """
    Candidates inside target +/- tolerance ranked by net check desc, then distance from
    target asc. When nothing lands in the window, the whole set is ranked instead.
    """
    low = target_payment - payment_tolerance
    high = target_payment + payment_tolerance
    within = [c for c in candidates if low <= c.payment <= high]
    pool = within if within else list(candidates)
    return sorted(pool, key=lambda c: (-c.net_check_to_dealer, abs(c.payment - target_payment)))


def run_rehash(
    deal: DealInput,
    lenders: Sequence[LenderConfig],
    *,
    as_of_year: Optional[int] = None,
) -> RehashResult:
    year = resolve_year(as_of_year)
    risk = assess_risk(deal, year)

    candidates: list[DealCandidate] = []
    active = [l for l in lenders if l.active]
    for lender in active:
        candidates.extend(_lender_candidates(deal, lender, risk, year))

    ranked = rank_candidates(candidates, deal.target_payment, deal.payment_tolerance)
    best = ranked[0] if ranked else None
    logger.info(
        "Rehash complete",
        extra={
            "lenders_evaluated": len(active),
            "candidates": len(candidates),
            "ranked": len(ranked),
            "best_lender": best.lender_id if best else None,
            "ltv_percent": round(risk.ltv_percent, 1),
        },
    )
    return RehashResult(best_deal=best, all_candidates=ranked, risk_assessment=risk)
