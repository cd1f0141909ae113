"""
Static lender configuration: pricing grid, vehicle rules, deal-validation rules and the
advance policy. The advance policy is a discriminated union on `type`; each variant is
evaluated by a function registered in services.advance.
"""
from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from schemas.deal import CreditTier


class LenderTierPricing(BaseModel):
    credit_tier: CreditTier
    min_apr: float = Field(..., ge=0)
    max_apr: float = Field(..., ge=0)
    min_down_pct: float = Field(0.0, ge=0)
    base_advance_percent: float = Field(..., gt=0)
    max_advance_percent: float = Field(..., gt=0)
    max_ltv_percent: float = Field(..., gt=0)

    model_config = {"frozen": True}

    @property
    def mid_apr(self) -> float:
        return (self.min_apr + self.max_apr) / 2


class VehicleRestrictions(BaseModel):
    max_age: int = Field(..., ge=0, description="Maximum vehicle age in years")
    max_mileage: int = Field(..., ge=0)
    excluded_makes: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class YearRange(BaseModel):
    start: int
    end: int

    model_config = {"frozen": True}

    def contains(self, year: int) -> bool:
        return self.start <= year <= self.end


class VehiclePreference(BaseModel):
    """Make-level advance multiplier. 1.0 is neutral, 0.80 is a 20% penalty."""

    make: str
    multiplier: float = Field(..., gt=0)
    reason: Optional[str] = None
    year_range: Optional[YearRange] = None

    model_config = {"frozen": True}

    def applies_to(self, make: str, year: int) -> bool:
        if self.make.lower() != make.lower():
            return False
        return self.year_range is None or self.year_range.contains(year)


class DealValidationRules(BaseModel):
    """Lender-specific deal checks, evaluated by services.lender_rules.validate_deal."""

    label: str = Field(..., description="Lender name used in rejection messages")
    min_amount_financed: Optional[float] = None
    max_amount_financed: Optional[float] = None
    min_down_payment: Optional[float] = None
    min_down_percent_of_price: Optional[float] = Field(None, ge=0, le=1)

    model_config = {"frozen": True}


class FeeBundle(BaseModel):
    doc_fee: float = 0.0
    origination_fee: float = 0.0
    misc_fees: float = 0.0
    holdback_percent: float = Field(0.0, ge=0, le=1)

    model_config = {"frozen": True}

    @property
    def flat_total(self) -> float:
        return self.doc_fee + self.origination_fee + self.misc_fees


class DealerTierAdvances(BaseModel):
    platinum: float
    gold: float
    standard: float

    model_config = {"frozen": True}


class MultiplierRange(BaseModel):
    min: float
    max: float

    model_config = {"frozen": True}


class CostBasedPolicy(BaseModel):
    """Advance as a percentage of dealer cost, by dealer tier."""

    type: Literal["cost_based"] = "cost_based"
    tier_advances: DealerTierAdvances
    dealer_tier: Literal["platinum", "gold", "standard"] = "standard"
    fees: FeeBundle

    model_config = {"frozen": True}


class PaymentBasedPolicy(BaseModel):
    """Advance multiplier picked from a range by credit tier."""

    type: Literal["payment_based"] = "payment_based"
    payment_multiplier_range: MultiplierRange
    fees: FeeBundle

    model_config = {"frozen": True}


class RiskAdjustedPolicy(BaseModel):
    """Base advance shifted by the composite risk score mapped onto an adjustment range."""

    type: Literal["risk_adjusted"] = "risk_adjusted"
    base_advance: float = 1.10
    risk_adjustment_range: MultiplierRange
    fees: FeeBundle

    model_config = {"frozen": True}


class FallbackPolicy(BaseModel):
    """Pricing-grid advance capped by cost and book value; flat lender fee percent."""

    type: Literal["fallback"] = "fallback"

    model_config = {"frozen": True}


AdvancePolicy = Annotated[
    Union[CostBasedPolicy, PaymentBasedPolicy, RiskAdjustedPolicy, FallbackPolicy],
    Field(discriminator="type"),
]


class LenderConfig(BaseModel):
    id: str
    name: str
    active: bool = True
    allowed_terms: list[int] = Field(..., min_length=1)
    min_amount_financed: float = Field(0.0, ge=0)
    max_amount_financed: float = Field(..., gt=0)
    max_backend_total: float = Field(0.0, ge=0)
    max_backend_percent_of_amount: float = Field(100.0, ge=0)
    max_vehicle_age_years: int = Field(..., ge=0)
    max_miles: int = Field(..., ge=0)
    lender_fee_percent: float = Field(0.0, ge=0)
    pricing_grid: list[LenderTierPricing]
    vehicle_restrictions: VehicleRestrictions
    vehicle_preferences: list[VehiclePreference] = Field(default_factory=list)
    advance_policy: AdvancePolicy = Field(default_factory=FallbackPolicy)
    validation: Optional[DealValidationRules] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_grid_and_terms(self) -> "LenderConfig":
        tiers = [row.credit_tier for row in self.pricing_grid]
        if len(tiers) != len(set(tiers)):
            raise ValueError(f"Lender {self.id}: duplicate credit tier in pricing grid")
        if any(t <= 0 for t in self.allowed_terms):
            raise ValueError(f"Lender {self.id}: allowed terms must be positive")
        return self

    def tier_row(self, credit_tier: str) -> Optional[LenderTierPricing]:
        return next((row for row in self.pricing_grid if row.credit_tier == credit_tier), None)


class LenderSummary(BaseModel):
    """Catalog entry returned by GET /api/lenders."""

    id: str
    name: str
    active: bool
    allowed_terms: list[int]
    advance_type: str
    credit_tiers: list[str]
