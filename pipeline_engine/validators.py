"""
Input Validation for the Pipeline Fee Engine

Validates reference data and requests before any calculation runs.
Raises ValueError with clear messages for any constraint violations.
"""

import logging

from .models import (
    CURRENCIES,
    SCOPE_TYPES,
    ExchangeRate,
    FeeStructure,
    IntensityConfig,
    Opportunity,
    WithholdingProfile,
)

logger = logging.getLogger(__name__)


class InputValidator:
    """Validates engine input according to business rules."""

    WEIGHT_SUM_TOLERANCE = 0.001

    def validate_fee_structures(self, fee_structures: list[FeeStructure]) -> None:
        """
        Validate every structure, then the set as a whole: at most one
        global default. A missing default is reported by the resolver as
        incomplete configuration.
        """
        for fs in fee_structures:
            self.validate_fee_structure(fs)

        defaults = [fs.id for fs in fee_structures if fs.is_default]
        if len(defaults) > 1:
            raise ValueError(f"Only one default fee structure is allowed, found {len(defaults)}: {defaults}")
        for fs in fee_structures:
            if fs.is_default and not fs.is_global_default:
                raise ValueError(f"Default fee structure {fs.id} must have global scope")

    def validate_fee_structure(self, fs: FeeStructure) -> None:
        if fs.scope.type not in SCOPE_TYPES:
            raise ValueError(f"Fee structure {fs.id}: invalid scope type {fs.scope.type}")
        if fs.scope.type != "global" and not fs.scope.value:
            raise ValueError(f"Fee structure {fs.id}: {fs.scope.type} scope requires a value")
        if not fs.tiers:
            raise ValueError(f"Fee structure {fs.id}: at least one tier is required")

        tiers = fs.sorted_tiers()
        for i, tier in enumerate(tiers):
            if not (0 <= tier.rate <= 1):
                raise ValueError(f"Fee structure {fs.id}: tier {i} rate must be between 0 and 1, got: {tier.rate}")
            if tier.min_millions < 0:
                raise ValueError(f"Fee structure {fs.id}: tier {i} min_millions cannot be negative")
            if tier.max_millions is not None and tier.max_millions <= tier.min_millions:
                raise ValueError(f"Fee structure {fs.id}: tier {i} max_millions must exceed min_millions")

        if not tiers[-1].is_open_ended:
            raise ValueError(f"Fee structure {fs.id}: the last tier must be open-ended")

        for i, (current, following) in enumerate(zip(tiers, tiers[1:])):
            if current.is_open_ended:
                raise ValueError(f"Fee structure {fs.id}: only the last tier can be open-ended")
            if current.max_millions != following.min_millions:
                raise ValueError(
                    f"Fee structure {fs.id}: tiers {i} and {i + 1} are not contiguous "
                    f"({current.max_millions} != {following.min_millions})"
                )

    def validate_withholding_profiles(self, profiles: list[WithholdingProfile]) -> None:
        for profile in profiles:
            if not profile.scenarios:
                raise ValueError(f"Withholding profile {profile.name} requires at least one scenario")
            for scenario in profile.scenarios:
                if not (0 <= scenario.rate <= 1):
                    raise ValueError(
                        f"Withholding scenario {scenario.name} rate must be between 0 and 1, got: {scenario.rate}"
                    )

    def validate_opportunities(self, opportunities: list[Opportunity]) -> None:
        for opp in opportunities:
            if not (0 <= opp.probability_of_award <= 1):
                raise ValueError(
                    f"Opportunity {opp.id}: probability_of_award must be between 0 and 1, "
                    f"got: {opp.probability_of_award}"
                )
            if opp.asch_value_usd < 0:
                raise ValueError(f"Opportunity {opp.id}: asch_value_usd cannot be negative")

    def validate_exchange_rates(self, rates: list[ExchangeRate]) -> None:
        for r in rates:
            for code in (r.from_currency, r.to_currency):
                if code not in CURRENCIES:
                    raise ValueError(f"Unsupported currency: {code}")
            if r.rate < 0:
                raise ValueError(f"Exchange rate {r.from_currency}->{r.to_currency} cannot be negative")

    def validate_currency(self, code: str) -> None:
        if code not in CURRENCIES:
            raise ValueError(f"Unsupported currency: {code}")

    def validate_intensity_config(self, config: IntensityConfig) -> None:
        t = config.thresholds
        if not (0 <= t.hot_days < t.warm_days < t.cool_days < t.cold_days):
            raise ValueError(
                "Intensity thresholds must be ascending: "
                f"hot={t.hot_days}, warm={t.warm_days}, cool={t.cool_days}, cold={t.cold_days}"
            )
        if config.benchmarks.high_quality_pct_target <= 0:
            raise ValueError("high_quality_pct_target must be positive")

        # Not enforced: the composite score is clamped anyway
        if abs(config.weights.total - 1) > self.WEIGHT_SUM_TOLERANCE:
            logger.warning(f"Intensity weights sum to {config.weights.total:.3f}, expected 1.0")
