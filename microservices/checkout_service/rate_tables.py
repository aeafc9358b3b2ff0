"""
Checkout Rate Tables

Static shipping and tax tables, frozen at import time.
All amounts are USD, all rates are fractions (0.0725 == 7.25%).

The engines take these tables as constructor arguments so tests can
inject synthetic tables.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Tuple, Union

ZoneId = Union[int, str]


def _frozen(data: Dict) -> Mapping:
    return MappingProxyType(data)


def _rates(data: Dict[ZoneId, str]) -> Mapping[ZoneId, Decimal]:
    return MappingProxyType({key: Decimal(value) for key, value in data.items()})


def _table(mapping: Mapping):
    # mappingproxy is unhashable before 3.12, so dataclasses reject it as a plain default
    return field(default_factory=lambda: mapping)


# ============================================================================
# Shipping
# ============================================================================

# Domestic zones, measured from the Los Angeles warehouse
US_SHIPPING_ZONES: Mapping[int, FrozenSet[str]] = _frozen({
    1: frozenset({"CA", "NV", "AZ"}),  # West Coast
    2: frozenset({"OR", "WA", "ID", "MT", "WY", "UT", "CO", "NM"}),  # Mountain
    3: frozenset({"ND", "SD", "NE", "KS", "OK", "TX", "MN", "IA", "MO", "AR", "LA"}),  # Central
    4: frozenset({"WI", "IL", "MI", "IN", "OH", "KY", "TN", "MS", "AL"}),  # Midwest/South
    5: frozenset({
        "ME", "NH", "VT", "MA", "RI", "CT", "NY", "NJ", "PA", "DE",
        "MD", "DC", "VA", "WV", "NC", "SC", "GA", "FL",
    }),  # East Coast
    6: frozenset({"AK", "HI", "PR", "VI", "GU", "AS"}),  # Alaska, Hawaii, territories
})
DEFAULT_US_ZONE = 5

INTERNATIONAL_ZONES: Mapping[str, FrozenSet[str]] = _frozen({
    "A": frozenset({"CA", "MX"}),
    "B": frozenset({"GB", "DE", "FR", "NL", "BE", "AT", "CH", "IE", "DK", "SE", "NO", "FI"}),
    "C": frozenset({"PL", "CZ", "HU", "RO", "BG", "SK", "SI", "HR", "EE", "LV", "LT"}),
    "D": frozenset({"JP", "KR", "AU", "NZ", "SG", "HK", "TW"}),
    "E": frozenset(),  # rest of world
})
DEFAULT_INTERNATIONAL_ZONE = "E"

DOMESTIC_RATES: Mapping[str, Mapping[ZoneId, Decimal]] = _frozen({
    "standard": _rates({1: "5.99", 2: "6.99", 3: "7.99", 4: "8.99", 5: "9.99", 6: "14.99"}),
    "express": _rates({1: "12.99", 2: "14.99", 3: "16.99", 4: "18.99", 5: "19.99", 6: "29.99"}),
    "overnight": _rates({1: "24.99", 2: "29.99", 3: "34.99", 4: "39.99", 5: "44.99", 6: "59.99"}),
})

INTERNATIONAL_RATES: Mapping[str, Mapping[ZoneId, Decimal]] = _frozen({
    "standard": _rates({"A": "12.99", "B": "19.99", "C": "24.99", "D": "29.99", "E": "34.99"}),
    "express": _rates({"A": "24.99", "B": "39.99", "C": "49.99", "D": "59.99", "E": "69.99"}),
})

# Per pound beyond the first
DOMESTIC_WEIGHT_SURCHARGE = Decimal("0.50")
INTERNATIONAL_WEIGHT_SURCHARGE = Decimal("1.50")


@dataclass(frozen=True)
class MethodInfo:
    """Display data for a shipping method"""
    name: str
    description: str
    min_days: int
    max_days: int


DOMESTIC_METHODS: Mapping[str, MethodInfo] = _frozen({
    "standard": MethodInfo("Standard Shipping", "Delivered in 5-7 business days", 5, 7),
    "express": MethodInfo("Express Shipping", "Delivered in 2-3 business days", 2, 3),
    "overnight": MethodInfo("Overnight Shipping", "Delivered next business day", 1, 1),
})

INTERNATIONAL_METHODS: Mapping[str, MethodInfo] = _frozen({
    "standard": MethodInfo("International Standard", "Delivered in 10-21 business days", 10, 21),
    "express": MethodInfo("International Express", "Delivered in 5-10 business days", 5, 10),
})

DOMESTIC_FREE_SHIPPING_THRESHOLD = Decimal("75")
INTERNATIONAL_FREE_SHIPPING_THRESHOLD = Decimal("150")
FREE_SHIPPING_METHOD = "standard"

SHIPPING_COUNTRIES: Tuple[Tuple[str, str], ...] = (
    ("US", "United States"),
    ("CA", "Canada"),
    ("MX", "Mexico"),
    ("GB", "United Kingdom"),
    ("DE", "Germany"),
    ("FR", "France"),
    ("NL", "Netherlands"),
    ("BE", "Belgium"),
    ("AT", "Austria"),
    ("CH", "Switzerland"),
    ("IE", "Ireland"),
    ("DK", "Denmark"),
    ("SE", "Sweden"),
    ("NO", "Norway"),
    ("FI", "Finland"),
    ("AU", "Australia"),
    ("NZ", "New Zealand"),
    ("JP", "Japan"),
    ("KR", "South Korea"),
    ("SG", "Singapore"),
    ("HK", "Hong Kong"),
)

US_STATES: Tuple[Tuple[str, str], ...] = (
    ("AL", "Alabama"), ("AK", "Alaska"), ("AZ", "Arizona"), ("AR", "Arkansas"),
    ("CA", "California"), ("CO", "Colorado"), ("CT", "Connecticut"), ("DE", "Delaware"),
    ("FL", "Florida"), ("GA", "Georgia"), ("HI", "Hawaii"), ("ID", "Idaho"),
    ("IL", "Illinois"), ("IN", "Indiana"), ("IA", "Iowa"), ("KS", "Kansas"),
    ("KY", "Kentucky"), ("LA", "Louisiana"), ("ME", "Maine"), ("MD", "Maryland"),
    ("MA", "Massachusetts"), ("MI", "Michigan"), ("MN", "Minnesota"), ("MS", "Mississippi"),
    ("MO", "Missouri"), ("MT", "Montana"), ("NE", "Nebraska"), ("NV", "Nevada"),
    ("NH", "New Hampshire"), ("NJ", "New Jersey"), ("NM", "New Mexico"), ("NY", "New York"),
    ("NC", "North Carolina"), ("ND", "North Dakota"), ("OH", "Ohio"), ("OK", "Oklahoma"),
    ("OR", "Oregon"), ("PA", "Pennsylvania"), ("RI", "Rhode Island"), ("SC", "South Carolina"),
    ("SD", "South Dakota"), ("TN", "Tennessee"), ("TX", "Texas"), ("UT", "Utah"),
    ("VT", "Vermont"), ("VA", "Virginia"), ("WA", "Washington"), ("WV", "West Virginia"),
    ("WI", "Wisconsin"), ("WY", "Wyoming"), ("DC", "District of Columbia"),
)

CANADIAN_PROVINCES: Tuple[Tuple[str, str], ...] = (
    ("AB", "Alberta"),
    ("BC", "British Columbia"),
    ("MB", "Manitoba"),
    ("NB", "New Brunswick"),
    ("NL", "Newfoundland and Labrador"),
    ("NS", "Nova Scotia"),
    ("NT", "Northwest Territories"),
    ("NU", "Nunavut"),
    ("ON", "Ontario"),
    ("PE", "Prince Edward Island"),
    ("QC", "Quebec"),
    ("SK", "Saskatchewan"),
    ("YT", "Yukon"),
)


@dataclass(frozen=True)
class ShippingRateTable:
    """Everything the shipping engine looks up"""
    us_zones: Mapping[int, FrozenSet[str]] = _table(US_SHIPPING_ZONES)
    international_zones: Mapping[str, FrozenSet[str]] = _table(INTERNATIONAL_ZONES)
    default_us_zone: int = DEFAULT_US_ZONE
    default_international_zone: str = DEFAULT_INTERNATIONAL_ZONE
    domestic_rates: Mapping[str, Mapping[ZoneId, Decimal]] = _table(DOMESTIC_RATES)
    international_rates: Mapping[str, Mapping[ZoneId, Decimal]] = _table(INTERNATIONAL_RATES)
    domestic_weight_surcharge: Decimal = DOMESTIC_WEIGHT_SURCHARGE
    international_weight_surcharge: Decimal = INTERNATIONAL_WEIGHT_SURCHARGE
    domestic_methods: Mapping[str, MethodInfo] = _table(DOMESTIC_METHODS)
    international_methods: Mapping[str, MethodInfo] = _table(INTERNATIONAL_METHODS)
    domestic_free_threshold: Decimal = DOMESTIC_FREE_SHIPPING_THRESHOLD
    international_free_threshold: Decimal = INTERNATIONAL_FREE_SHIPPING_THRESHOLD
    free_shipping_method: str = FREE_SHIPPING_METHOD


# ============================================================================
# Tax
# ============================================================================

# State sales tax, 2024
US_STATE_TAX_RATES: Mapping[str, Decimal] = _rates({
    "AL": "0.04", "AK": "0", "AZ": "0.056", "AR": "0.065", "CA": "0.0725",
    "CO": "0.029", "CT": "0.0635", "DE": "0", "FL": "0.06", "GA": "0.04",
    "HI": "0.04", "ID": "0.06", "IL": "0.0625", "IN": "0.07", "IA": "0.06",
    "KS": "0.065", "KY": "0.06", "LA": "0.0445", "ME": "0.055", "MD": "0.06",
    "MA": "0.0625", "MI": "0.06", "MN": "0.06875", "MS": "0.07", "MO": "0.04225",
    "MT": "0", "NE": "0.055", "NV": "0.0685", "NH": "0", "NJ": "0.06625",
    "NM": "0.05125", "NY": "0.04", "NC": "0.0475", "ND": "0.05", "OH": "0.0575",
    "OK": "0.045", "OR": "0", "PA": "0.06", "RI": "0.07", "SC": "0.06",
    "SD": "0.045", "TN": "0.07", "TX": "0.0625", "UT": "0.0485", "VT": "0.06",
    "VA": "0.043", "WA": "0.065", "WV": "0.06", "WI": "0.05", "WY": "0.04",
    "DC": "0.06",
    "PR": "0.105",  # Puerto Rico is taxed as a state
})

US_NO_SALES_TAX_STATES: FrozenSet[str] = frozenset({"AK", "DE", "MT", "NH", "OR"})

# States whose sales tax also applies to the shipping charge
US_STATES_TAXING_SHIPPING: FrozenSet[str] = frozenset({
    "AR", "CT", "DC", "GA", "HI", "IN", "KS", "KY", "MI", "MN", "MS", "NE", "NJ",
    "NM", "NY", "NC", "ND", "OH", "PA", "SD", "TN", "TX", "VT", "WA", "WV", "WI",
})

INTERNATIONAL_VAT_RATES: Mapping[str, Decimal] = _rates({
    # Europe
    "AT": "0.20", "BE": "0.21", "BG": "0.20", "HR": "0.25", "CY": "0.19",
    "CZ": "0.21", "DK": "0.25", "EE": "0.20", "FI": "0.24", "FR": "0.20",
    "DE": "0.19", "GR": "0.24", "HU": "0.27", "IE": "0.23", "IT": "0.22",
    "LV": "0.21", "LT": "0.21", "LU": "0.17", "MT": "0.18", "NL": "0.21",
    "PL": "0.23", "PT": "0.23", "RO": "0.19", "SK": "0.20", "SI": "0.22",
    "ES": "0.21", "SE": "0.25",
    # Other
    "GB": "0.20", "CH": "0.077", "NO": "0.25", "AU": "0.10", "NZ": "0.15",
    "CA": "0.05",  # GST only; Canada goes through the GST + provincial path
    "JP": "0.10", "SG": "0.08", "KR": "0.10",
})

CANADA_GST_RATE = Decimal("0.05")

# Provincial rate on top of GST: PST, QST, or the provincial part of HST
CANADIAN_PROVINCIAL_TAX: Mapping[str, Decimal] = _rates({
    "AB": "0", "BC": "0.07", "MB": "0.07", "NB": "0.10", "NL": "0.10",
    "NT": "0", "NS": "0.10", "NU": "0", "ON": "0.08", "PE": "0.10",
    "QC": "0.09975", "SK": "0.06", "YT": "0",
})

HST_PROVINCES: FrozenSet[str] = frozenset({"NB", "NL", "NS", "ON", "PE"})
QST_PROVINCES: FrozenSet[str] = frozenset({"QC"})


@dataclass(frozen=True)
class TaxCategory:
    taxable: bool = True


TAX_CATEGORIES: Mapping[str, TaxCategory] = _frozen({
    "apparel": TaxCategory(),
    "digital": TaxCategory(),
    "prints": TaxCategory(),
    "accessories": TaxCategory(),
    "limited": TaxCategory(),
})
DEFAULT_TAX_CATEGORY = "apparel"


@dataclass(frozen=True)
class TaxRateTable:
    """Everything the tax engine looks up"""
    us_state_rates: Mapping[str, Decimal] = _table(US_STATE_TAX_RATES)
    us_no_sales_tax_states: FrozenSet[str] = US_NO_SALES_TAX_STATES
    us_states_taxing_shipping: FrozenSet[str] = US_STATES_TAXING_SHIPPING
    vat_rates: Mapping[str, Decimal] = _table(INTERNATIONAL_VAT_RATES)
    canada_gst_rate: Decimal = CANADA_GST_RATE
    canada_provincial_rates: Mapping[str, Decimal] = _table(CANADIAN_PROVINCIAL_TAX)
    hst_provinces: FrozenSet[str] = HST_PROVINCES
    qst_provinces: FrozenSet[str] = QST_PROVINCES
    categories: Mapping[str, TaxCategory] = _table(TAX_CATEGORIES)
    default_category: str = DEFAULT_TAX_CATEGORY


DEFAULT_SHIPPING_TABLE = ShippingRateTable()
DEFAULT_TAX_TABLE = TaxRateTable()
