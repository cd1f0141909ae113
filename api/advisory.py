"""
Advisory endpoints. Always answer 200 with a well-formed body; provider or input problems
fall back to deterministic rules.
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError

from api.dependencies import get_settings
from config import Settings
from schemas.advisory import AnalyzeDealRequest, CandidateTriageRequest, TriageRequest
from services.advisory import (
    analyze_deal,
    build_triage_request,
    fallback_triage,
    select_triaged_deal,
    triage_deals,
)
from utils.case import snakeize, to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["advisory"])


@router.post("/analyze-deal", response_model=dict)
def analyze_deal_route(payload: dict[str, Any] = Body(...), settings: Settings = Depends(get_settings)):
    try:
        request = AnalyzeDealRequest.model_validate(snakeize(payload))
    except ValidationError as e:
        logger.warning("Invalid analyze-deal payload: %s", e.error_count())
        request = AnalyzeDealRequest()
    return to_response(analyze_deal(request, settings))


@router.post("/triage", response_model=dict)
def triage_route(payload: dict[str, Any] = Body(...), settings: Settings = Depends(get_settings)):
    try:
        request = TriageRequest.model_validate(snakeize(payload))
    except ValidationError as e:
        logger.warning("Invalid triage payload: %s", e.error_count())
        return to_response(fallback_triage(TriageRequest(target_payment=0)))
    return to_response(triage_deals(request, settings))


@router.post("/triage-candidates", response_model=dict)
def triage_candidates_route(payload: dict[str, Any] = Body(...), settings: Settings = Depends(get_settings)):
    """Triage rehash candidates and return the pick together with the selected candidate."""
    try:
        request = CandidateTriageRequest.model_validate(snakeize(payload))
    except ValidationError as e:
        logger.warning("Invalid triage-candidates payload: %s", e.error_count())
        request = CandidateTriageRequest()
    triage_request = build_triage_request(
        request.candidates, request.target_payment, request.mandatory_products, settings.triage_max_deals
    )
    response = triage_deals(triage_request, settings)
    selected = select_triaged_deal(request.candidates, response) if response.best_deal_id else None
    return {
        **to_response(response),
        "selectedDeal": to_response(selected) if selected else None,
    }
