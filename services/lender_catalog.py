"""
Default lender catalog (subprime auto lenders).
Plain dict data validated into frozen LenderConfig models at startup; the loaded list is
passed explicitly to the rehash engine, never read from module state by the engine.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from pydantic import ValidationError

from schemas.lender import LenderConfig


class LenderCatalogError(ValueError):
    """Static lender data failed validation."""


def _grid(rows: list[tuple[str, float, float, float, float, float, float]]) -> list[dict[str, Any]]:
    return [
        {
            "credit_tier": tier,
            "min_apr": min_apr,
            "max_apr": max_apr,
            "min_down_pct": min_down,
            "base_advance_percent": base_adv,
            "max_advance_percent": max_adv,
            "max_ltv_percent": max_ltv,
        }
        for tier, min_apr, max_apr, min_down, base_adv, max_adv, max_ltv in rows
    ]


def _prefs(rows: list[tuple]) -> list[dict[str, Any]]:
    out = []
    for row in rows:
        make, multiplier, reason = row[:3]
        pref: dict[str, Any] = {"make": make, "multiplier": multiplier, "reason": reason}
        if len(row) > 3:
            pref["year_range"] = {"start": row[3], "end": row[4]}
        out.append(pref)
    return out


LENDERS_DATA: list[dict[str, Any]] = [
    {
        "id": "westlake",
        "name": "Westlake Financial",
        "allowed_terms": [36, 48, 60, 72],
        "min_amount_financed": 5_000,
        "max_amount_financed": 45_000,
        "max_backend_total": 3_500,
        "max_backend_percent_of_amount": 25,
        "max_vehicle_age_years": 20,
        "max_miles": 180_000,
        "lender_fee_percent": 3.0,
        "pricing_grid": _grid([
            ("deep_subprime", 22, 27, 0.10, 115, 145, 145),
            ("subprime", 18, 23, 0.10, 115, 140, 140),
            ("near_prime", 12, 18, 0.05, 110, 130, 130),
            ("prime", 8, 12, 0.0, 105, 120, 120),
        ]),
        "vehicle_restrictions": {"max_age": 20, "max_mileage": 180_000, "excluded_makes": ["Daewoo", "Ferrari"]},
        "vehicle_preferences": _prefs([
            ("Toyota", 1.03, "Preferred Make Bonus"),
            ("Honda", 1.08, "Preferred Make Bonus"),
            ("Subaru", 1.05, "Reliability Bonus"),
            ("Lexus", 1.08, "Luxury Preferred"),
            ("Acura", 1.06, "Luxury Preferred"),
            ("Kia", 0.90, "Theft Risk Penalty", 2011, 2021),
            ("Hyundai", 0.90, "Theft Risk Penalty", 2011, 2021),
            ("Nissan", 0.88, "CVT Risk"),
            ("Dodge", 0.85, "Depreciation Risk"),
            ("Jeep", 0.88, "Reliability Risk"),
            ("Ford", 0.85, "Focus/Fiesta Transmission Risk", 2012, 2018),
            ("Chevrolet", 0.90, "Cruze Risk"),
            ("BMW", 0.85, "Luxury Maintenance Risk"),
            ("Mercedes", 0.85, "Luxury Maintenance Risk"),
        ]),
        "advance_policy": {
            "type": "cost_based",
            "tier_advances": {"platinum": 1.12, "gold": 1.10, "standard": 1.08},
            "fees": {"doc_fee": 799, "origination_fee": 595, "misc_fees": 150, "holdback_percent": 0.02},
        },
        "validation": {
            "label": "Westlake",
            "min_amount_financed": 5_000,
            "max_amount_financed": 45_000,
            "min_down_percent_of_price": 0.05,
        },
    },
    {
        "id": "western_funding",
        "name": "Western Funding",
        "allowed_terms": [48, 60, 72, 84],
        "min_amount_financed": 4_000,
        "max_amount_financed": 40_000,
        "max_backend_total": 4_000,
        "max_backend_percent_of_amount": 30,
        "max_vehicle_age_years": 15,
        "max_miles": 180_000,
        "lender_fee_percent": 2.5,
        "pricing_grid": _grid([
            ("deep_subprime", 24, 29, 0.08, 120, 150, 150),
            ("subprime", 20, 25, 0.08, 115, 145, 145),
            ("near_prime", 14, 20, 0.05, 110, 135, 135),
            ("prime", 9, 14, 0.0, 105, 125, 125),
        ]),
        "vehicle_restrictions": {
            "max_age": 15,
            "max_mileage": 180_000,
            "excluded_makes": ["Land Rover", "Jaguar", "Saab", "Suzuki"],
        },
        "vehicle_preferences": _prefs([
            ("Toyota", 1.06, "Preferred Make Bonus"),
            ("Honda", 1.05, "Preferred Make Bonus"),
            ("Subaru", 1.04, "Preferred Make Bonus"),
            ("Lexus", 1.06, "Luxury Preferred Make"),
            ("Kia", 0.88, "High Theft Risk Penalty", 2011, 2021),
            ("Hyundai", 0.88, "High Theft Risk Penalty", 2011, 2021),
            ("Nissan", 0.90, "CVT Reliability Risk"),
            ("Dodge", 0.90, "High Depreciation Risk"),
            ("Chrysler", 0.88, "Reliability Risk"),
        ]),
        "advance_policy": {
            "type": "payment_based",
            "payment_multiplier_range": {"min": 1.20, "max": 1.45},
            "fees": {"doc_fee": 695, "origination_fee": 495, "misc_fees": 125, "holdback_percent": 0.025},
        },
        "validation": {
            "label": "Western Funding",
            "min_amount_financed": 4_000,
            "max_amount_financed": 40_000,
        },
    },
    {
        "id": "uac",
        "name": "United Auto Credit",
        "allowed_terms": [36, 48, 60, 72],
        "min_amount_financed": 5_000,
        "max_amount_financed": 50_000,
        "max_backend_total": 3_000,
        "max_backend_percent_of_amount": 20,
        "max_vehicle_age_years": 15,
        "max_miles": 150_000,
        "lender_fee_percent": 2.0,
        "pricing_grid": _grid([
            ("deep_subprime", 23, 28, 0.10, 115, 140, 140),
            ("subprime", 19, 24, 0.10, 112, 135, 135),
            ("near_prime", 14, 20, 0.05, 108, 125, 125),
            ("prime", 9, 14, 0.0, 105, 120, 120),
        ]),
        "vehicle_restrictions": {"max_age": 15, "max_mileage": 150_000, "excluded_makes": ["Land Rover"]},
        "vehicle_preferences": _prefs([
            ("Toyota", 1.05, "Preferred Make Bonus"),
            ("Honda", 1.05, "Preferred Make Bonus"),
            ("Subaru", 1.08, "High Reliability Bonus"),
            ("Lexus", 1.10, "Luxury Low-Mile Bonus"),
            ("Acura", 1.10, "Luxury Low-Mile Bonus"),
            ("Mazda", 1.02, "Reliability Bonus"),
            ("Kia", 0.85, "Theft Risk Penalty", 2011, 2022),
            ("Hyundai", 0.85, "Theft Risk Penalty", 2011, 2022),
            ("Nissan", 0.90, "CVT Transmission Risk"),
            ("Dodge", 0.88, "Depreciation Risk"),
            ("Jeep", 0.88, "Reliability Risk"),
            ("Ford", 0.90, "Model-Specific Risk"),
            ("BMW", 0.88, "Luxury Maintenance Risk"),
            ("Mercedes", 0.88, "Luxury Maintenance Risk"),
            ("Audi", 0.85, "Luxury Maintenance Risk"),
            ("Volkswagen", 0.90, "Reliability Risk"),
            ("Mitsubishi", 0.85, "Depreciation Risk"),
        ]),
        "advance_policy": {
            "type": "risk_adjusted",
            "base_advance": 1.10,
            "risk_adjustment_range": {"min": -0.10, "max": 0.08},
            "fees": {"doc_fee": 650, "origination_fee": 450, "misc_fees": 100, "holdback_percent": 0.018},
        },
        "validation": {
            "label": "UAC",
            "min_amount_financed": 5_000,
            "max_amount_financed": 50_000,
            "min_down_payment": 500,
        },
    },
]


def load_lenders(data: Iterable[dict[str, Any]]) -> list[LenderConfig]:
    """Validate raw lender dicts; raises LenderCatalogError naming the offending lender."""
    lenders: list[LenderConfig] = []
    for raw in data:
        try:
            lenders.append(LenderConfig.model_validate(raw))
        except ValidationError as e:
            raise LenderCatalogError(f"Invalid lender config {raw.get('id', '?')}: {e}") from e
    ids = [l.id for l in lenders]
    if len(ids) != len(set(ids)):
        raise LenderCatalogError("Duplicate lender id in catalog")
    return lenders


def load_default_lenders() -> list[LenderConfig]:
    return load_lenders(LENDERS_DATA)


def get_lender(lenders: Iterable[LenderConfig], lender_id: str) -> Optional[LenderConfig]:
    return next((l for l in lenders if l.id == lender_id), None)
