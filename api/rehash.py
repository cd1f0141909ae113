from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from api.dependencies import get_lenders, parse_body
from schemas.compliance import ComplianceRequest
from schemas.deal import BudgetTermRequest, DealInput, RehashOptions
from schemas.lender import LenderConfig
from services.compliance import (
    describe_bank_rules,
    determine_bank_rules,
    filter_compliant_deals,
    mandatory_products,
)
from services.payment import choose_term_for_budget
from services.rehash_engine import run_rehash
from utils.case import snakeize, to_response

router = APIRouter(prefix="/api", tags=["rehash"])

OPTION_FIELDS = tuple(RehashOptions.model_fields)


@router.post("/rehash", response_model=dict)
def rehash(payload: dict[str, Any] = Body(...), lenders: list[LenderConfig] = Depends(get_lenders)):
    """
    Run the optimizer for one deal. Body is a DealInput plus optional `lenderIds`
    (restrict the catalog) and `asOfYear` (reference year for vehicle age).
    """
    body = snakeize(payload)
    options = parse_body(RehashOptions, {k: body.pop(k) for k in OPTION_FIELDS if k in body})
    deal = parse_body(DealInput, body)

    if options.lender_ids:
        unknown = set(options.lender_ids) - {l.id for l in lenders}
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown lender ids: {', '.join(sorted(unknown))}")
        lenders = [l for l in lenders if l.id in options.lender_ids]

    result = run_rehash(deal, lenders, as_of_year=options.as_of_year)
    return to_response(result)


@router.post("/budget-term", response_model=dict)
def budget_term(payload: dict[str, Any] = Body(...)):
    """First term (in request order) whose payment fits target + tolerance; nulls when none fits."""
    body = parse_body(BudgetTermRequest, payload)
    fit = choose_term_for_budget(
        price=body.price,
        down=body.down,
        apr=body.apr,
        tax_rate=body.tax_rate,
        fees=body.fees,
        target_monthly=body.target_monthly,
        tolerance=body.tolerance,
        terms=body.terms,
    )
    term, payment = fit if fit else (None, None)
    return {"termMonths": term, "payment": payment, "fits": fit is not None}


@router.post("/compliance", response_model=dict)
def compliance(payload: dict[str, Any] = Body(...)):
    """
    Partition candidates into compliant/rejected. Uses explicit `bankRules` when given,
    otherwise derives them from mileage, LTV percent and credit tier.
    """
    body = parse_body(ComplianceRequest, payload)
    rules = body.bank_rules
    if rules is None:
        if body.mileage is None or body.ltv_percent is None or body.credit_tier is None:
            raise HTTPException(
                status_code=400,
                detail="Provide bankRules, or mileage, ltvPercent and creditTier to derive them",
            )
        rules = determine_bank_rules(body.mileage, body.ltv_percent, body.credit_tier)

    result = filter_compliant_deals(body.candidates, rules)
    return {
        **to_response(result),
        "bankRules": to_response(rules),
        "mandatoryProducts": mandatory_products(rules),
        "ruleSummary": describe_bank_rules(rules),
    }
