from schemas.advisory import (
    AnalyzeDealRequest,
    DealInsight,
    TriageDeal,
    TriageRequest,
    TriageResponse,
)
from schemas.compliance import BankRules, ComplianceRequest, ComplianceResult, RejectedDeal
from schemas.deal import (
    BackendProducts,
    BudgetTermRequest,
    DealCandidate,
    DealInput,
    PtiResult,
    RehashOptions,
    RehashResult,
    RiskAssessment,
    VehicleEligibilityResult,
)
from schemas.lender import (
    AdvancePolicy,
    CostBasedPolicy,
    DealValidationRules,
    FallbackPolicy,
    LenderConfig,
    LenderSummary,
    LenderTierPricing,
    PaymentBasedPolicy,
    RiskAdjustedPolicy,
    VehiclePreference,
    VehicleRestrictions,
)

__all__ = [
    "AnalyzeDealRequest",
    "DealInsight",
    "TriageDeal",
    "TriageRequest",
    "TriageResponse",
    "BankRules",
    "ComplianceRequest",
    "ComplianceResult",
    "RejectedDeal",
    "BackendProducts",
    "BudgetTermRequest",
    "DealCandidate",
    "DealInput",
    "PtiResult",
    "RehashOptions",
    "RehashResult",
    "RiskAssessment",
    "VehicleEligibilityResult",
    "AdvancePolicy",
    "CostBasedPolicy",
    "DealValidationRules",
    "FallbackPolicy",
    "LenderConfig",
    "LenderSummary",
    "LenderTierPricing",
    "PaymentBasedPolicy",
    "RiskAdjustedPolicy",
    "VehiclePreference",
    "VehicleRestrictions",
]
