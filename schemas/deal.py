"""
Deal-side models: the customer/vehicle scenario under evaluation and everything the
rehash engine derives from it (risk assessment, eligibility, candidates, result).
All models are frozen; term and down-payment variations are made with model_copy.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, PositiveInt

CreditTier = Literal["deep_subprime", "subprime", "near_prime", "prime"]
OptimizationLevel = Literal["optimal", "vsc_stripped", "all_stripped"]
OutOfWarrantyReason = Literal["age", "mileage", "both"]


class BackendProducts(BaseModel):
    gap: bool = False
    vsc: bool = False
    other_products_total: float = Field(0.0, ge=0)

    model_config = {"frozen": True}


class DealInput(BaseModel):
    """One customer/vehicle/deal scenario. Immutable for the duration of a search."""

    vehicle_id: Optional[str] = None
    vehicle_year: int = Field(..., ge=1900, le=2100)
    vehicle_make: str = ""
    vehicle_mileage: int = Field(..., ge=0)
    vehicle_price: float = Field(..., ge=0, description="Selling price before tax/fees")
    vehicle_cost: float = Field(..., ge=0, description="Dealer cost")
    tax_rate: float = Field(0.0, ge=0, description="e.g. 0.09 for 9%")
    fees: float = Field(0.0, ge=0, description="Doc + DMV + misc dealer fees")
    down_payment: float = 0.0
    trade_allowance: float = 0.0
    trade_payoff: float = 0.0
    backend_products: BackendProducts = Field(default_factory=BackendProducts)
    customer_credit_tier: CreditTier
    target_payment: float = Field(..., ge=0)
    payment_tolerance: float = Field(50.0, ge=0)
    preferred_term_months: Optional[int] = Field(None, gt=0)
    monthly_income: Optional[float] = None

    model_config = {"frozen": True}

    @property
    def total_down(self) -> float:
        return self.down_payment + self.trade_allowance - self.trade_payoff


class RiskAssessment(BaseModel):
    """Computed once per deal before the lender loop; shared by every candidate."""

    book_value: float
    ltv_percent: float
    is_upside_down: bool
    is_out_of_warranty: bool
    out_of_warranty_reason: Optional[OutOfWarrantyReason] = None
    vehicle_age_years: int
    vehicle_mileage: int
    recommend_gap: bool
    recommend_vsc: bool

    model_config = {"frozen": True}


class VehicleEligibilityResult(BaseModel):
    is_eligible: bool
    reasons: list[str] = Field(default_factory=list)
    advance_multiplier: float = 1.0
    warnings: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class PtiResult(BaseModel):
    pti_percent: Optional[float] = None
    pti_warning: Optional[str] = None
    pti_exceeds_limit: bool = False
    required_income: Optional[int] = None

    model_config = {"frozen": True}


class DealCandidate(BaseModel):
    """One fully evaluated (lender, term, down option, backend scenario) combination."""

    lender_id: str
    lender_name: str
    term_months: int
    apr: float
    amount_financed: float
    payment: float
    net_check_to_dealer: float
    dealer_front_gross: float
    dealer_back_end_gross: float
    dealer_profit: float
    total_down: float
    backend_total: float
    ltv: float
    within_guidelines: bool = True
    reasons: list[str] = Field(default_factory=list)
    adjustments: list[str] = Field(default_factory=list)
    has_gap: bool = False
    has_vsc: bool = False
    smart_note: str = ""
    risk_assessment: Optional[RiskAssessment] = None
    optimization_level: OptimizationLevel = "optimal"
    vehicle_warnings: list[str] = Field(default_factory=list)
    advance_multiplier: float = 1.0
    pti_percent: Optional[float] = None
    pti_warning: Optional[str] = None
    pti_exceeds_limit: bool = False
    required_income: Optional[int] = None

    model_config = {"frozen": True}


class RehashResult(BaseModel):
    best_deal: Optional[DealCandidate] = None
    all_candidates: list[DealCandidate] = Field(default_factory=list)
    risk_assessment: RiskAssessment

    model_config = {"frozen": True}


class RehashOptions(BaseModel):
    """Request-level options sent alongside the deal to POST /api/rehash."""

    lender_ids: Optional[list[str]] = Field(None, description="Restrict the search to these catalog ids")
    as_of_year: Optional[int] = Field(None, ge=1900, le=2100, description="Reference year for vehicle age")


class BudgetTermRequest(BaseModel):
    price: float = Field(..., ge=0)
    down: float = 0.0
    apr: float = Field(..., ge=0)
    tax_rate: float = Field(0.0, ge=0)
    fees: float = Field(0.0, ge=0)
    target_monthly: float = Field(..., gt=0)
    tolerance: float = Field(0.0, ge=0)
    terms: list[PositiveInt] = Field(default_factory=lambda: [36, 48, 60, 72, 84], min_length=1)
