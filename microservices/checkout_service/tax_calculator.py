"""
Tax Engine

Destination-based sales tax for the checkout pipeline.

- US: flat state rate, optionally limited to states with nexus. Some
  states also tax the shipping charge.
- Canada: 5% GST plus the provincial rate (PST, QST or HST portion),
  both on subtotal + shipping.
- VAT countries: flat rate on subtotal + shipping.
- Anywhere else: no tax.

Amounts are rounded half-up to cents after the full multiplication.
No currency conversion: every rate applies to USD amounts.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, Iterable, Optional, Union

from .models import TaxBreakdownLine, TaxResult, round_currency
from .rate_tables import DEFAULT_TAX_TABLE, TaxRateTable

logger = logging.getLogger(__name__)

Amount = Union[Decimal, int, float, str]

ZERO = Decimal("0")


def _to_decimal(value: Optional[Amount]) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _upper(code: Optional[str]) -> str:
    return (code or "").strip().upper()


@dataclass
class TaxConfig:
    """
    Tax collection options.

    nexus_states: US states where tax is collected. Empty collects everywhere.
    """
    nexus_states: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def with_nexus(cls, states: Iterable[str]) -> "TaxConfig":
        return cls(nexus_states=frozenset(_upper(s) for s in states if s))


class TaxEngine:
    """Tax calculator"""

    def __init__(
        self,
        config: Optional[TaxConfig] = None,
        tables: TaxRateTable = DEFAULT_TAX_TABLE,
    ):
        self.config = config or TaxConfig()
        self.tables = tables

    def calculate(
        self,
        subtotal: Amount,
        country: str,
        state: Optional[str] = None,
        postal_code: Optional[str] = None,
        category: str = "apparel",
        shipping: Amount = 0,
    ) -> TaxResult:
        """
        Calculate tax for an order.

        Args:
            subtotal: Cart subtotal
            country: ISO-2 destination country
            state: State or province code
            postal_code: Accepted for future local-rate lookups; unused
            category: Product tax category; unknown categories are treated as apparel
            shipping: Shipping charge

        Returns:
            TaxResult whose breakdown sums to tax_amount
        """
        subtotal_value = _to_decimal(subtotal)
        shipping_value = _to_decimal(shipping)
        country_code = _upper(country)
        region = _upper(state)

        category_info = (
            self.tables.categories.get((category or "").lower())
            or self.tables.categories[self.tables.default_category]
        )
        if not category_info.taxable:
            return self._no_tax(subtotal_value, shipping_value)

        if country_code == "US":
            return self._calculate_us(subtotal_value, shipping_value, region)
        if country_code == "CA":
            return self._calculate_canada(subtotal_value, shipping_value, region)
        if country_code in self.tables.vat_rates:
            return self._calculate_vat(subtotal_value, shipping_value, country_code)

        logger.debug(f"No tax configured for country {country_code or '<empty>'}")
        return self._no_tax(subtotal_value, shipping_value)

    def _calculate_us(self, subtotal: Decimal, shipping: Decimal, state: str) -> TaxResult:
        if self.config.nexus_states and state not in self.config.nexus_states:
            return self._no_tax(subtotal, shipping, jurisdiction=f"{state} - No nexus")

        rate = self.tables.us_state_rates.get(state, ZERO)
        if rate == ZERO:
            return self._no_tax(subtotal, shipping, jurisdiction=f"{state} - No state sales tax")

        taxable = subtotal + shipping if state in self.tables.us_states_taxing_shipping else subtotal
        tax_amount = round_currency(taxable * rate)

        return TaxResult(
            subtotal=subtotal,
            shipping=shipping,
            taxable_amount=taxable,
            tax_rate=rate,
            tax_amount=tax_amount,
            total=round_currency(subtotal + shipping + tax_amount),
            breakdown=[TaxBreakdownLine(name=f"{state} State Sales Tax", rate=rate, amount=tax_amount)],
            jurisdiction=state,
        )

    def _calculate_canada(self, subtotal: Decimal, shipping: Decimal, province: str) -> TaxResult:
        taxable = subtotal + shipping
        gst_rate = self.tables.canada_gst_rate
        provincial_rate = self.tables.canada_provincial_rates.get(province, ZERO)

        gst_amount = round_currency(taxable * gst_rate)
        breakdown = [TaxBreakdownLine(name="GST", rate=gst_rate, amount=gst_amount)]

        provincial_amount = ZERO
        if provincial_rate > ZERO:
            provincial_amount = round_currency(taxable * provincial_rate)
            breakdown.append(TaxBreakdownLine(
                name=self._provincial_label(province),
                rate=provincial_rate,
                amount=provincial_amount,
            ))

        # Each component is rounded on its own
        tax_amount = gst_amount + provincial_amount

        return TaxResult(
            subtotal=subtotal,
            shipping=shipping,
            taxable_amount=taxable,
            tax_rate=gst_rate + provincial_rate,
            tax_amount=tax_amount,
            total=round_currency(subtotal + shipping + tax_amount),
            breakdown=breakdown,
            jurisdiction=f"CA-{province}",
        )

    def _calculate_vat(self, subtotal: Decimal, shipping: Decimal, country: str) -> TaxResult:
        taxable = subtotal + shipping
        rate = self.tables.vat_rates[country]
        tax_amount = round_currency(taxable * rate)

        return TaxResult(
            subtotal=subtotal,
            shipping=shipping,
            taxable_amount=taxable,
            tax_rate=rate,
            tax_amount=tax_amount,
            total=round_currency(subtotal + shipping + tax_amount),
            breakdown=[TaxBreakdownLine(name="VAT", rate=rate, amount=tax_amount)],
            jurisdiction=country,
        )

    def _provincial_label(self, province: str) -> str:
        if province in self.tables.hst_provinces:
            return "HST (provincial portion)"
        if province in self.tables.qst_provinces:
            return "QST"
        return "PST"

    @staticmethod
    def _no_tax(subtotal: Decimal, shipping: Decimal, jurisdiction: Optional[str] = None) -> TaxResult:
        return TaxResult(
            subtotal=subtotal,
            shipping=shipping,
            taxable_amount=subtotal,
            tax_rate=ZERO,
            tax_amount=Decimal("0.00"),
            total=round_currency(subtotal + shipping),
            breakdown=[],
            jurisdiction=jurisdiction,
        )

    def get_tax_rate(self, country: str, state: Optional[str] = None) -> Decimal:
        """Headline rate for display; Canada combines GST and provincial"""
        country_code = _upper(country)
        region = _upper(state)

        if country_code == "US":
            return self.tables.us_state_rates.get(region, ZERO)
        if country_code == "CA":
            return self.tables.canada_gst_rate + self.tables.canada_provincial_rates.get(region, ZERO)
        return self.tables.vat_rates.get(country_code, ZERO)

    def is_tax_free(self, country: str, state: Optional[str] = None) -> bool:
        """True for the no-sales-tax states and for countries without VAT"""
        country_code = _upper(country)
        if country_code == "US":
            return _upper(state) in self.tables.us_no_sales_tax_states
        return country_code not in self.tables.vat_rates

