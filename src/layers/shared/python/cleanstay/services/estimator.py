"""Price estimator for cleaning requests.

Turns a rough description of the job (service, size, add-ons) into an
indicative CZK price range shown by the website calculator and the chat
widget. Pure and deterministic.
"""

import math
from enum import Enum

from pydantic import AliasChoices, BaseModel, Field

CURRENCY = "CZK"
ESTIMATE_NOTE = "Orientační odhad, vše dle dohody."

DEFAULT_SQM = 45
SQM_PER_ROOM = 20

# (small <= 45 m2, medium <= 75 m2, large)
SMALL_MAX_SQM = 45
MEDIUM_MAX_SQM = 75
BASIC_TIERS = (890, 1390, 1990)
GENERAL_TIERS = (1200, 1790, 2490)
POST_RENO_TIERS = (1400, 1990, 2790)

GENERAL_MULTIPLIER = 1.45
POST_RENO_MULTIPLIER = 1.75

BUSINESS_RATE_PER_SQM = 25
BUSINESS_MINIMUM = 1500

AIRBNB_NO_LAUNDRY_FACTOR = 0.7
AIRBNB_MINIMUM = 600

WINDOWS_RATE_PER_SQM = 45
APPLIANCE_RATE = 350
LAUNDRY_RATE_PER_KG = 60
EXPRESS_MULTIPLIER = 1.3

RANGE_LOW = 0.85
RANGE_HIGH = 1.15


class ServiceType(str, Enum):
    """Services the calculator can price."""

    BASIC = "basic"
    GENERAL = "general"
    POST_RENO = "post_reno"
    AIRBNB = "airbnb"
    OFFICE = "office"
    SVJ = "svj"


class EstimateInput(BaseModel):
    """Calculator input. Accepts camelCase names sent by the website."""

    service: ServiceType
    sqm: float | None = Field(None, gt=0, le=100000)
    rooms: int | None = Field(None, ge=0, le=100)
    windows_sqm: float | None = Field(
        None, ge=0, le=10000, validation_alias=AliasChoices("windows_sqm", "windowsSqm")
    )
    appliances: int | None = Field(None, ge=0, le=50)
    laundry_kg: float | None = Field(
        None, ge=0, le=1000, validation_alias=AliasChoices("laundry_kg", "laundryKg")
    )
    express: bool = False


class EstimateResult(BaseModel):
    """Indicative price range."""

    price_from: int
    price_to: int
    currency: str = CURRENCY
    note: str = ESTIMATE_NOTE


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def _tier(sqm: float, tiers: tuple[int, int, int]) -> int:
    small, medium, large = tiers
    if sqm <= SMALL_MAX_SQM:
        return small
    if sqm <= MEDIUM_MAX_SQM:
        return medium
    return large


def resolve_sqm(sqm: float | None, rooms: int | None) -> float:
    """Floor area to price by: explicit m2, else rooms x 20, else 45."""
    if sqm is not None:
        return sqm
    if rooms:
        return rooms * SQM_PER_ROOM
    return DEFAULT_SQM


def base_price(service: ServiceType | str, sqm: float, laundry_kg: float | None = None) -> float:
    """Price of the service itself before add-ons."""
    service = ServiceType(service)

    if service == ServiceType.BASIC:
        return _tier(sqm, BASIC_TIERS)
    if service == ServiceType.GENERAL:
        return _tier(sqm, GENERAL_TIERS) * GENERAL_MULTIPLIER
    if service == ServiceType.POST_RENO:
        return _tier(sqm, POST_RENO_TIERS) * POST_RENO_MULTIPLIER
    if service in (ServiceType.OFFICE, ServiceType.SVJ):
        return max(BUSINESS_MINIMUM, sqm * BUSINESS_RATE_PER_SQM)

    # Airbnb turnover: basic tiers, cheaper when no laundry is handled
    price = _tier(sqm, BASIC_TIERS)
    if not laundry_kg:
        price = max(AIRBNB_MINIMUM, round_half_up(price * AIRBNB_NO_LAUNDRY_FACTOR))
    return price


def estimate_price(data: EstimateInput) -> EstimateResult:
    """Estimate the price range for a cleaning request.

    Args:
        data: Validated calculator input.

    Returns:
        EstimateResult with a +/- 15 % range around the computed price.
    """
    sqm = resolve_sqm(data.sqm, data.rooms)
    price = base_price(data.service, sqm, data.laundry_kg)

    if data.windows_sqm:
        price += data.windows_sqm * WINDOWS_RATE_PER_SQM
    if data.appliances:
        price += data.appliances * APPLIANCE_RATE
    if data.laundry_kg:
        price += data.laundry_kg * LAUNDRY_RATE_PER_KG
    if data.express:
        price *= EXPRESS_MULTIPLIER

    return EstimateResult(
        price_from=round_half_up(price * RANGE_LOW),
        price_to=round_half_up(price * RANGE_HIGH),
    )


def price_brackets() -> list[dict]:
    """Price list rows for the public price page, derived from the tiers."""
    labels = ("do 45 m²", "46–75 m²", "nad 75 m²")
    rows = []
    for service, tiers, multiplier in (
        (ServiceType.BASIC, BASIC_TIERS, 1.0),
        (ServiceType.GENERAL, GENERAL_TIERS, GENERAL_MULTIPLIER),
        (ServiceType.POST_RENO, POST_RENO_TIERS, POST_RENO_MULTIPLIER),
    ):
        for label, tier_price in zip(labels, tiers):
            rows.append({
                "service": service.value,
                "size": label,
                "price_from": round_half_up(tier_price * multiplier),
            })
    return rows
