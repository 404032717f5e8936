"""
Unit Tests for Currency Conversion
"""

from decimal import Decimal

import pytest

from pipeline_engine.calculators.currency import build_rate_map, convert, convert_from_usd, convert_to_usd
from pipeline_engine.errors import ConfigurationIncompleteError, DivisionByZeroError, RateNotFoundError
from pipeline_engine.models import ExchangeRate


def rate(code: str, value: str) -> ExchangeRate:
    return ExchangeRate(from_currency=code, to_currency="USD", rate=Decimal(value), updated_at="2026-02-01")


@pytest.fixture
def rate_map():
    return build_rate_map([
        rate("CLP", "0.00105"),
        rate("PEN", "0.265"),
        rate("EUR", "1.08"),
        rate("UF", "39.5"),
        rate("VES", "0"),
    ])


class TestBuildRateMap:

    def test_keys_use_from_to_format(self, rate_map):
        assert rate_map["CLP->USD"] == Decimal("0.00105")

    def test_last_write_wins(self):
        rate_map = build_rate_map([rate("PEN", "0.26"), rate("PEN", "0.27")])
        assert rate_map == {"PEN->USD": Decimal("0.27")}


class TestConvertToUSD:

    def test_usd_is_identity(self):
        assert convert_to_usd(100, "USD", {}) == Decimal("100")

    def test_multiplies_by_rate(self, rate_map):
        """CLP 1,000,000 × 0.00105 = USD 1,050"""
        assert convert_to_usd(1_000_000, "CLP", rate_map) == Decimal("1050")

    def test_missing_rate(self, rate_map):
        with pytest.raises(RateNotFoundError):
            convert_to_usd(100, "BRL", rate_map)


class TestConvertFromUSD:

    def test_usd_is_identity(self):
        assert convert_from_usd(Decimal("12.5"), "USD", {}) == Decimal("12.5")

    def test_divides_by_rate(self, rate_map):
        """USD 265 / 0.265 = PEN 1,000"""
        assert convert_from_usd(265, "PEN", rate_map) == Decimal("1000")

    def test_missing_rate(self, rate_map):
        with pytest.raises(RateNotFoundError):
            convert_from_usd(100, "MXN", rate_map)

    def test_zero_rate_is_distinct_from_missing(self, rate_map):
        with pytest.raises(DivisionByZeroError):
            convert_from_usd(100, "VES", rate_map)


class TestConvert:

    def test_same_currency_is_identity(self):
        assert convert(42, "CLP", "CLP", {}) == Decimal("42")

    def test_pivots_through_usd(self, rate_map):
        """EUR 100 → USD 108 → UF 108 / 39.5"""
        assert convert(100, "EUR", "UF", rate_map) == Decimal("108") / Decimal("39.5")

    def test_propagates_missing_source_rate(self, rate_map):
        with pytest.raises(RateNotFoundError) as exc:
            convert(100, "COP", "PEN", rate_map)
        assert exc.value.from_currency == "COP"

    def test_propagates_zero_target_rate(self, rate_map):
        with pytest.raises(DivisionByZeroError):
            convert(100, "EUR", "VES", rate_map)

    def test_missing_rate_reads_as_incomplete_configuration(self, rate_map):
        with pytest.raises(ConfigurationIncompleteError):
            convert(100, "EUR", "BRL", rate_map)
