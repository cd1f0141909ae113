from typing import Optional

from pydantic import BaseModel, Field

from schemas.deal import CreditTier, DealCandidate


class BankRules(BaseModel):
    """Bank-style rules derived from mileage, LTV and credit tier."""

    ltv_cap: float
    mandatory_vsc: bool = False
    mandatory_gap: bool = False
    max_payment_to_income: Optional[float] = Field(None, description="Fraction, e.g. 0.18")

    model_config = {"frozen": True}


class ComplianceRequest(BaseModel):
    """Explicit bank_rules win; otherwise mileage, ltv_percent and credit_tier derive them."""

    candidates: list[DealCandidate] = Field(default_factory=list)
    bank_rules: Optional[BankRules] = None
    mileage: Optional[int] = Field(None, ge=0)
    ltv_percent: Optional[float] = None
    credit_tier: Optional[CreditTier] = None


class RejectedDeal(BaseModel):
    deal: DealCandidate
    violations: list[str]


class ComplianceResult(BaseModel):
    valid_deals: list[DealCandidate] = Field(default_factory=list)
    rejected_deals: list[RejectedDeal] = Field(default_factory=list)
