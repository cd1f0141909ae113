from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_lenders
from schemas.lender import LenderConfig, LenderSummary
from services.lender_catalog import get_lender
from utils.case import to_response

router = APIRouter(prefix="/api/lenders", tags=["lenders"])

MSG_LENDER_NOT_FOUND = "Lender not found"


def _lender_summary(l: LenderConfig) -> LenderSummary:
    return LenderSummary(
        id=l.id,
        name=l.name,
        active=l.active,
        allowed_terms=list(l.allowed_terms),
        advance_type=l.advance_policy.type,
        credit_tiers=[row.credit_tier for row in l.pricing_grid],
    )


@router.get("", response_model=list[dict])
def list_lenders(lenders: list[LenderConfig] = Depends(get_lenders)) -> list[dict[str, Any]]:
    return [to_response(_lender_summary(l)) for l in sorted(lenders, key=lambda l: l.name)]


@router.get("/{lender_id}", response_model=dict)
def get_lender_config(lender_id: str, lenders: list[LenderConfig] = Depends(get_lenders)) -> dict[str, Any]:
    lender = get_lender(lenders, lender_id)
    if not lender:
        raise HTTPException(status_code=404, detail=MSG_LENDER_NOT_FOUND)
    return to_response(lender)
