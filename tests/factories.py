"""Deal and lender builders shared by the test modules."""
from typing import Any

from schemas.deal import DealCandidate, DealInput
from schemas.lender import LenderConfig

AS_OF_YEAR = 2025

# 6-year-old, 45k-mile subprime deal; book value $9,925 against a $18,995 retail price
SAMPLE_DEAL_KWARGS: dict[str, Any] = {
    "vehicle_year": 2019,
    "vehicle_mileage": 45_000,
    "vehicle_price": 18_995,
    "vehicle_cost": 17_000,
    "tax_rate": 0.09,
    "fees": 799,
    "down_payment": 3_000,
    "trade_allowance": 5_000,
    "trade_payoff": 3_000,
    "customer_credit_tier": "subprime",
    "target_payment": 450,
    "payment_tolerance": 50,
}

# 3-year-old Toyota that the default catalog can structure
CATALOG_DEAL_KWARGS: dict[str, Any] = {
    "vehicle_year": 2022,
    "vehicle_make": "Toyota",
    "vehicle_mileage": 28_000,
    "vehicle_price": 21_500,
    "vehicle_cost": 19_000,
    "tax_rate": 0.07,
    "fees": 450,
    "down_payment": 5_000,
    "customer_credit_tier": "near_prime",
    "target_payment": 450,
    "payment_tolerance": 50,
}


def make_deal(**overrides: Any) -> DealInput:
    return DealInput(**{**SAMPLE_DEAL_KWARGS, **overrides})


def make_lender(**overrides: Any) -> LenderConfig:
    """Loose fallback-policy lender: no validation rules, LTV up to 250%."""
    data: dict[str, Any] = {
        "id": "test_lender",
        "name": "Test Lender",
        "allowed_terms": [48, 60, 72],
        "min_amount_financed": 0,
        "max_amount_financed": 50_000,
        "max_backend_total": 5_000,
        "max_backend_percent_of_amount": 100,
        "max_vehicle_age_years": 20,
        "max_miles": 200_000,
        "lender_fee_percent": 2.0,
        "pricing_grid": [
            {
                "credit_tier": tier,
                "min_apr": 18,
                "max_apr": 22,
                "base_advance_percent": 100,
                "max_advance_percent": 150,
                "max_ltv_percent": 250,
            }
            for tier in ("deep_subprime", "subprime", "near_prime", "prime")
        ],
        "vehicle_restrictions": {"max_age": 20, "max_mileage": 200_000, "excluded_makes": ["Yugo"]},
    }
    data.update(overrides)
    return LenderConfig.model_validate(data)


def make_candidate(**overrides: Any) -> DealCandidate:
    data: dict[str, Any] = {
        "lender_id": "test_lender",
        "lender_name": "Test Lender",
        "term_months": 60,
        "apr": 20.0,
        "amount_financed": 15_000,
        "payment": 450,
        "net_check_to_dealer": 12_000,
        "dealer_front_gross": 2_000,
        "dealer_back_end_gross": 900,
        "dealer_profit": 1_500,
        "total_down": 3_000,
        "backend_total": 900,
        "ltv": 110,
        "has_gap": True,
        "has_vsc": True,
    }
    data.update(overrides)
    return DealCandidate(**data)
