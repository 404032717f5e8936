"""
Currency Conversion

Converts raw currency amounts (not millions) through a USD pivot using a
caller-supplied snapshot of exchange rates. Rebuild the rate map whenever the
underlying rates change.
"""

from decimal import Decimal

from ..errors import DivisionByZeroError, RateNotFoundError
from ..models import ExchangeRate, to_decimal

USD = "USD"


def rate_key(from_currency: str, to_currency: str) -> str:
    return f"{from_currency}->{to_currency}"


def build_rate_map(rates: list[ExchangeRate]) -> dict[str, Decimal]:
    """Build a "FROM->TO" lookup. Later entries for the same pair win."""
    rate_map = {}
    for r in rates:
        rate_map[rate_key(r.from_currency, r.to_currency)] = r.rate
    return rate_map


def _lookup_usd_rate(currency: str, rate_map: dict[str, Decimal]) -> Decimal:
    rate = rate_map.get(rate_key(currency, USD))
    if rate is None:
        raise RateNotFoundError(currency, USD)
    return rate


def convert_to_usd(amount, from_currency: str, rate_map: dict[str, Decimal]) -> Decimal:
    """Convert an amount in from_currency to USD."""
    amount = to_decimal(amount)
    if from_currency == USD:
        return amount
    return amount * _lookup_usd_rate(from_currency, rate_map)


def convert_from_usd(amount_usd, to_currency: str, rate_map: dict[str, Decimal]) -> Decimal:
    """Convert a USD amount to to_currency."""
    amount_usd = to_decimal(amount_usd)
    if to_currency == USD:
        return amount_usd
    rate = _lookup_usd_rate(to_currency, rate_map)
    if rate == 0:
        raise DivisionByZeroError(to_currency)
    return amount_usd / rate


def convert(amount, from_currency: str, to_currency: str, rate_map: dict[str, Decimal]) -> Decimal:
    """Convert between any two currencies via USD."""
    if from_currency == to_currency:
        return to_decimal(amount)
    usd = convert_to_usd(amount, from_currency, rate_map)
    return convert_from_usd(usd, to_currency, rate_map)
