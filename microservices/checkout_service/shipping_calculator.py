"""
Shipping Rate Engine

Zone-based flat-rate shipping from the Los Angeles warehouse.

US destinations map to numeric zones 1-6 by state; international
destinations map to lettered zones A-E by country. A quote is the zone's
base rate for the method, plus a per-pound surcharge beyond the first
pound, plus an optional handling fee. Standard shipping is free once the
subtotal reaches the domestic or international threshold.

Pure computation: no I/O. The clock is injectable for delivery estimates.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Union

from .models import (
    Address,
    AddressValidation,
    BusinessDays,
    DeliveryEstimate,
    FreeShippingStatus,
    Region,
    ShippingMethod,
    ShippingQuote,
    ZoneId,
    round_currency,
)
from .protocols import CheckoutValidationError
from .rate_tables import (
    CANADIAN_PROVINCES,
    DEFAULT_SHIPPING_TABLE,
    SHIPPING_COUNTRIES,
    US_STATES,
    MethodInfo,
    ShippingRateTable,
)

logger = logging.getLogger(__name__)

US_ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
CA_POSTAL_PATTERN = re.compile(r"^[A-Za-z]\d[A-Za-z][ -]?\d[A-Za-z]\d$")

# Used when a method has no display data for the destination
DEFAULT_ESTIMATE_DAYS = (5, 10)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_decimal(value: Union[Decimal, int, float, str, None], default: str = "0") -> Decimal:
    if value is None:
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _method_value(method: Union[ShippingMethod, str]) -> str:
    if isinstance(method, ShippingMethod):
        return method.value
    return str(method).lower()


def _format_day(day: datetime) -> str:
    # "Mon, Jan 6"
    return f"{day:%a}, {day:%b} {day.day}"


@dataclass
class ShippingConfig:
    """Operator-tunable shipping options"""
    handling_fee: Decimal = Decimal("0")
    free_shipping_enabled: bool = True


class ShippingRateEngine:
    """
    Shipping calculator.

    Example:
        engine = ShippingRateEngine()
        quote = engine.quote("US", "CA", method="standard", weight=1, subtotal=70)
        quote.total  # Decimal("5.99")
    """

    def __init__(
        self,
        config: Optional[ShippingConfig] = None,
        tables: ShippingRateTable = DEFAULT_SHIPPING_TABLE,
        clock: Optional[Clock] = None,
    ):
        self.config = config or ShippingConfig()
        self.tables = tables
        self.clock = clock or utc_now

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def get_us_zone(self, state: Optional[str]) -> int:
        """Zone 1-6 for a US state code; unknown states default to zone 5"""
        code = (state or "").strip().upper()
        for zone, states in self.tables.us_zones.items():
            if code in states:
                return zone
        return self.tables.default_us_zone

    def get_international_zone(self, country: Optional[str]) -> str:
        """Zone A-E for a country code; unknown countries default to zone E"""
        code = (country or "").strip().upper()
        for zone, countries in self.tables.international_zones.items():
            if code in countries:
                return zone
        return self.tables.default_international_zone

    def get_zone(self, state: Optional[str], country: str = "US") -> ZoneId:
        """Zone for a destination; the state decides for US, the country otherwise"""
        if self._is_domestic(country):
            return self.get_us_zone(state)
        return self.get_international_zone(country)

    # ------------------------------------------------------------------
    # Rates
    # ------------------------------------------------------------------

    def get_available_methods(self, country: str) -> List[str]:
        """Methods offered for a destination; overnight is US only"""
        if self._is_domestic(country):
            return list(self.tables.domestic_rates.keys())
        return list(self.tables.international_rates.keys())

    def get_base_rate(self, method: Union[ShippingMethod, str], zone: ZoneId, domestic: bool) -> Decimal:
        """Base rate for a method and zone; unknown methods use the standard rate"""
        rates = self.tables.domestic_rates if domestic else self.tables.international_rates
        by_zone = rates.get(_method_value(method)) or rates["standard"]
        return by_zone[zone]

    def get_method_info(self, method: Union[ShippingMethod, str], domestic: bool) -> Optional[MethodInfo]:
        methods = self.tables.domestic_methods if domestic else self.tables.international_methods
        return methods.get(_method_value(method))

    def quote(
        self,
        country: str,
        state: Optional[str] = None,
        method: Union[ShippingMethod, str] = ShippingMethod.STANDARD,
        weight: Union[Decimal, int, float, str] = 1,
        subtotal: Union[Decimal, int, float, str] = 0,
    ) -> ShippingQuote:
        """
        Price one shipping method for a destination.

        Args:
            country: ISO-2 destination country
            state: State code (US only affects zoning)
            method: standard, express or overnight
            weight: Package weight in pounds
            subtotal: Cart subtotal, used for the free-shipping rule

        Returns:
            ShippingQuote with total rounded to cents

        Raises:
            CheckoutValidationError: destination missing or negative weight
        """
        if not country or not country.strip():
            raise CheckoutValidationError("Country is required")

        method_value = _method_value(method)
        weight_value = _to_decimal(weight, "1")
        subtotal_value = _to_decimal(subtotal)
        if weight_value < 0:
            raise CheckoutValidationError("Weight cannot be negative")

        domestic = self._is_domestic(country)

        zone = self.get_zone(state, country)
        base_rate = self.get_base_rate(method_value, zone, domestic)

        per_pound = (
            self.tables.domestic_weight_surcharge if domestic
            else self.tables.international_weight_surcharge
        )
        extra_weight = max(Decimal("0"), weight_value - 1)
        weight_surcharge = extra_weight * per_pound
        handling_fee = self.config.handling_fee

        total = round_currency(max(Decimal("0"), base_rate + weight_surcharge + handling_fee))

        free_shipping = self.check_free_shipping(country, subtotal_value)
        free_shipping_applied = (
            free_shipping.eligible and method_value == free_shipping.method
        )
        if free_shipping_applied:
            total = Decimal("0.00")

        info = self.get_method_info(method_value, domestic)
        if info is None:
            # Unknown method: standard rate, standard name, default window
            info = self.get_method_info("standard", domestic)
            min_days, max_days = DEFAULT_ESTIMATE_DAYS
        else:
            min_days, max_days = info.min_days, info.max_days

        return ShippingQuote(
            method=method_value,
            method_name=info.name,
            description=info.description,
            zone=zone,
            base_rate=base_rate,
            weight_surcharge=weight_surcharge,
            handling_fee=handling_fee,
            total=total,
            free_shipping_applied=free_shipping_applied,
            delivery_estimate=self.get_delivery_estimate(min_days, max_days),
            free_shipping=free_shipping,
        )

    def get_all_rates(
        self,
        country: str,
        state: Optional[str] = None,
        weight: Union[Decimal, int, float, str] = 1,
        subtotal: Union[Decimal, int, float, str] = 0,
    ) -> List[ShippingQuote]:
        """Quote every available method, cheapest first"""
        quotes = [
            self.quote(country, state, method=method, weight=weight, subtotal=subtotal)
            for method in self.get_available_methods(country)
        ]
        return sorted(quotes, key=lambda q: q.total)

    # ------------------------------------------------------------------
    # Free shipping
    # ------------------------------------------------------------------

    def check_free_shipping(
        self,
        country: str,
        subtotal: Union[Decimal, int, float, str],
    ) -> FreeShippingStatus:
        """Free-shipping eligibility and the amount still needed"""
        if not self.config.free_shipping_enabled:
            return FreeShippingStatus(eligible=False, message="Free shipping is not available")

        domestic = self._is_domestic(country)
        threshold = (
            self.tables.domestic_free_threshold if domestic
            else self.tables.international_free_threshold
        )
        subtotal_value = _to_decimal(subtotal)
        eligible = subtotal_value >= threshold
        amount_until_free = round_currency(max(Decimal("0"), threshold - subtotal_value))

        if eligible:
            message = "You qualify for free shipping!"
        else:
            message = f"Add ${amount_until_free:.2f} more for free shipping"

        return FreeShippingStatus(
            eligible=eligible,
            threshold=threshold,
            method=self.tables.free_shipping_method,
            amount_until_free=amount_until_free,
            message=message,
        )

    # ------------------------------------------------------------------
    # Delivery estimates
    # ------------------------------------------------------------------

    def add_business_days(self, start: datetime, days: int) -> datetime:
        """Advance `days` weekdays from `start`, skipping Saturday and Sunday"""
        current = start
        added = 0
        while added < days:
            current += timedelta(days=1)
            if current.weekday() < 5:
                added += 1
        return current

    def get_delivery_estimate(self, min_days: int, max_days: int) -> DeliveryEstimate:
        """Delivery window counted from today"""
        today = self.clock()
        min_date = self.add_business_days(today, min_days)
        max_date = self.add_business_days(today, max_days)

        if min_days == max_days:
            formatted = _format_day(min_date)
        else:
            formatted = f"{_format_day(min_date)} - {_format_day(max_date)}"

        return DeliveryEstimate(
            min_date=min_date,
            max_date=max_date,
            formatted=formatted,
            business_days=BusinessDays(min=min_days, max=max_days),
        )

    # ------------------------------------------------------------------
    # Addresses and regions
    # ------------------------------------------------------------------

    def validate_address(self, address: Address) -> AddressValidation:
        """Check a shipping address, reporting every problem found"""
        errors: List[str] = []
        country = (address.country or "").strip().upper()
        state = (address.state or "").strip()
        postal_code = (address.postal_code or "").strip()

        if not (address.line1 or "").strip():
            errors.append("Street address is required")
        if not (address.city or "").strip():
            errors.append("City is required")
        if not country:
            errors.append("Country is required")
        if not postal_code:
            errors.append("Postal/ZIP code is required")

        if country == "US":
            if not state:
                errors.append("State is required for US addresses")
            if postal_code and not US_ZIP_PATTERN.match(postal_code):
                errors.append("Invalid ZIP code format")
        elif country == "CA":
            if not state:
                errors.append("Province is required for Canadian addresses")
            if postal_code and not CA_POSTAL_PATTERN.match(postal_code):
                errors.append("Invalid postal code format")

        return AddressValidation(valid=not errors, errors=errors)

    def get_shipping_countries(self) -> List[Region]:
        return [Region(code=code, name=name) for code, name in SHIPPING_COUNTRIES]

    def get_regions(self, country: str) -> List[Region]:
        """States or provinces for a country; empty where none are tracked"""
        code = (country or "").strip().upper()
        if code == "US":
            pairs = US_STATES
        elif code == "CA":
            pairs = CANADIAN_PROVINCES
        else:
            return []
        return [Region(code=c, name=n) for c, n in pairs]

    @staticmethod
    def _is_domestic(country: Optional[str]) -> bool:
        return (country or "").strip().upper() == "US"
