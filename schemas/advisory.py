"""
Request/response shapes for the advisory layer (deal insight and triage).
These are what the external text-generation service is asked to produce and what the
deterministic fallbacks return when it is unavailable.
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field

from schemas.deal import DealCandidate

InsightStatus = Literal["good", "difficult", "impossible"]


class AnalyzeDealRequest(BaseModel):
    vehicle_price: Optional[float] = None
    target_payment: Optional[float] = None
    best_payment: Optional[float] = None
    credit_tier: Optional[str] = None
    income: Optional[float] = None
    bank_rules: list[str] = Field(default_factory=list)


class DealInsight(BaseModel):
    status: InsightStatus
    analysis: str
    strategy: str


class TriageDeal(BaseModel):
    id: str
    payment: float
    net_check_to_dealer: float
    has_gap: bool = False
    has_vsc: bool = False
    ltv: float
    term_months: int
    lender_name: str


class TriageRequest(BaseModel):
    valid_deals: list[TriageDeal] = Field(default_factory=list)
    target_payment: float
    mandatory_products: list[str] = Field(default_factory=list)


class TriageResponse(BaseModel):
    mode: Literal["profit", "survival"]
    best_deal_id: Optional[str] = None
    reason: str
    badge: str


class CandidateTriageRequest(BaseModel):
    """Rehash/compliance candidates sent straight to triage; ids are assigned server-side."""

    candidates: list[DealCandidate] = Field(default_factory=list)
    target_payment: float = 0.0
    mandatory_products: list[str] = Field(default_factory=list)
