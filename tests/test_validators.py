"""
Unit Tests for Input Validation
"""

import logging
from decimal import Decimal

import pytest

from pipeline_engine.models import (
    ExchangeRate,
    FeeStructure,
    FeeStructureScope,
    FeeTier,
    IntensityConfig,
    IntensityThresholds,
    IntensityWeights,
    Opportunity,
    WithholdingProfile,
    WithholdingScenario,
)
from pipeline_engine.validators import InputValidator


def tier(lo: str, hi: str | None, rate: str = "0.03") -> FeeTier:
    return FeeTier(
        label=f"{lo}-{hi}",
        min_millions=Decimal(lo),
        max_millions=Decimal(hi) if hi is not None else None,
        rate=Decimal(rate),
    )


def structure(id: str = "fs", tiers=None, scope=None, is_default: bool = False) -> FeeStructure:
    return FeeStructure(
        id=id,
        name=id,
        tiers=tiers if tiers is not None else [tier("0", "40"), tier("40", None, "0.02")],
        scope=scope or FeeStructureScope(),
        is_default=is_default,
    )


@pytest.fixture
def validator():
    return InputValidator()


class TestFeeStructureValidation:

    def test_valid_structure(self, validator):
        validator.validate_fee_structure(structure())

    def test_unsorted_tiers_are_accepted(self, validator):
        validator.validate_fee_structure(structure(tiers=[tier("40", None), tier("0", "40")]))

    def test_requires_tiers(self, validator):
        with pytest.raises(ValueError, match="at least one tier"):
            validator.validate_fee_structure(structure(tiers=[]))

    @pytest.mark.parametrize("rate", ["-0.01", "1.5"])
    def test_rate_bounds(self, validator, rate):
        with pytest.raises(ValueError, match="rate must be between 0 and 1"):
            validator.validate_fee_structure(structure(tiers=[tier("0", None, rate)]))

    def test_negative_min(self, validator):
        with pytest.raises(ValueError, match="cannot be negative"):
            validator.validate_fee_structure(structure(tiers=[tier("-5", "0"), tier("0", None)]))

    def test_max_must_exceed_min(self, validator):
        with pytest.raises(ValueError, match="must exceed"):
            validator.validate_fee_structure(structure(tiers=[tier("0", "0"), tier("0", None)]))

    def test_last_tier_open_ended(self, validator):
        with pytest.raises(ValueError, match="open-ended"):
            validator.validate_fee_structure(structure(tiers=[tier("0", "40"), tier("40", "60")]))

    def test_gap_rejected(self, validator):
        with pytest.raises(ValueError, match="not contiguous"):
            validator.validate_fee_structure(structure(tiers=[tier("0", "40"), tier("50", None)]))

    def test_invalid_scope_type(self, validator):
        with pytest.raises(ValueError, match="invalid scope type"):
            validator.validate_fee_structure(structure(scope=FeeStructureScope(type="region", value="LATAM")))

    def test_scoped_structure_needs_value(self, validator):
        with pytest.raises(ValueError, match="requires a value"):
            validator.validate_fee_structure(structure(scope=FeeStructureScope(type="country")))


class TestFeeStructureSet:

    def test_single_global_default(self, validator):
        validator.validate_fee_structures([
            structure("default", is_default=True),
            structure("peru", scope=FeeStructureScope(type="country", value="PE")),
        ])

    def test_missing_default_is_left_to_resolution(self, validator):
        validator.validate_fee_structures([structure("peru", scope=FeeStructureScope(type="country", value="PE"))])

    def test_two_defaults_rejected(self, validator):
        with pytest.raises(ValueError, match="Only one default"):
            validator.validate_fee_structures([structure("a", is_default=True), structure("b", is_default=True)])

    def test_default_must_be_global(self, validator):
        scoped = structure("peru", scope=FeeStructureScope(type="country", value="PE"), is_default=True)
        with pytest.raises(ValueError, match="must have global scope"):
            validator.validate_fee_structures([scoped])


class TestReferenceDataValidation:

    def test_withholding_requires_scenarios(self, validator):
        with pytest.raises(ValueError, match="at least one scenario"):
            validator.validate_withholding_profiles([WithholdingProfile(jurisdiction_country="CL", name="CL", scenarios=[])])

    def test_withholding_rate_bounds(self, validator):
        profile = WithholdingProfile(
            jurisdiction_country="CL",
            name="CL",
            scenarios=[WithholdingScenario(name="bad", rate=Decimal("1.2"))],
        )
        with pytest.raises(ValueError, match="between 0 and 1"):
            validator.validate_withholding_profiles([profile])

    def test_probability_bounds(self, validator):
        opp = Opportunity(
            id="o", country="CL", sector="mining", stage="proposal",
            asch_value_usd=Decimal("1"), probability_of_award=Decimal("1.1"),
        )
        with pytest.raises(ValueError, match="probability_of_award"):
            validator.validate_opportunities([opp])

    def test_negative_asch_value(self, validator):
        opp = Opportunity(
            id="o", country="CL", sector="mining", stage="proposal",
            asch_value_usd=Decimal("-1"), probability_of_award=Decimal("0.5"),
        )
        with pytest.raises(ValueError, match="cannot be negative"):
            validator.validate_opportunities([opp])

    def test_unsupported_currency(self, validator):
        with pytest.raises(ValueError, match="Unsupported currency: XYZ"):
            validator.validate_exchange_rates([ExchangeRate(from_currency="XYZ", to_currency="USD", rate=Decimal("1"))])

    def test_supported_currency(self, validator):
        validator.validate_currency("UF")


class TestIntensityConfigValidation:

    def test_defaults_are_valid(self, validator):
        validator.validate_intensity_config(IntensityConfig())

    def test_thresholds_must_ascend(self, validator):
        config = IntensityConfig(thresholds=IntensityThresholds(hot_days=30, warm_days=14))
        with pytest.raises(ValueError, match="ascending"):
            validator.validate_intensity_config(config)

    def test_weight_sum_only_warns(self, validator, caplog):
        config = IntensityConfig(weights=IntensityWeights(touchpoint_frequency=0.5))
        with caplog.at_level(logging.WARNING):
            validator.validate_intensity_config(config)
        assert "Intensity weights sum to 1.150" in caplog.text
