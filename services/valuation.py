"""
Book value of a vehicle from retail price, age and mileage.
Lenders compute LTV against book value, never against the retail selling price.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

# Age in years -> fraction of retail retained
DEPRECIATION_SCHEDULE: dict[int, float] = {
    0: 1.00,
    1: 0.85,
    2: 0.78,
    3: 0.72,
    4: 0.66,
    5: 0.60,
    6: 0.55,
    7: 0.50,
    8: 0.46,
    9: 0.42,
    10: 0.38,
}
MAX_SCHEDULE_AGE = 10

# (max miles inclusive, factor); applied on top of the age factor
MILEAGE_DEPRECIATION_BRACKETS: list[tuple[int, float]] = [
    (30_000, 1.00),
    (60_000, 0.95),
    (90_000, 0.90),
    (120_000, 0.85),
    (150_000, 0.80),
    (180_000, 0.75),
]
HIGH_MILEAGE_FACTOR = 0.70

# LTV reported when book value is zero
UNDEFINED_LTV_PERCENT = 999.0


def resolve_year(as_of_year: Optional[int]) -> int:
    return as_of_year if as_of_year is not None else date.today().year


def vehicle_age(vehicle_year: int, as_of_year: int) -> int:
    return as_of_year - vehicle_year


def age_factor(age_years: int) -> float:
    return DEPRECIATION_SCHEDULE[min(max(age_years, 0), MAX_SCHEDULE_AGE)]


def mileage_factor(mileage: int) -> float:
    for max_miles, factor in MILEAGE_DEPRECIATION_BRACKETS:
        if mileage <= max_miles:
            return factor
    return HIGH_MILEAGE_FACTOR


def book_value(retail_price: float, age_years: int, mileage: int) -> float:
    """round(retail x age factor x mileage factor), never negative."""
    value = round(retail_price * age_factor(age_years) * mileage_factor(mileage))
    return float(max(value, 0))


def ltv_percent(amount_financed: float, book: float) -> float:
    if book <= 0:
        return UNDEFINED_LTV_PERCENT
    return amount_financed / book * 100
