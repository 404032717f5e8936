"""
Pipeline Aggregator

Composes fee resolution, commission and withholding across a collection of
opportunities into portfolio totals.
"""

import logging
from decimal import Decimal

from .calculators import CommissionCalculator, FeeStructureResolver, WithholdingCalculator
from .errors import EngineError
from .models import (
    FeeStructure,
    FeesForecast,
    ForecastBucket,
    Opportunity,
    OpportunityFees,
    PipelineFailure,
    PipelineFeesSummary,
    WithholdingProfile,
)

logger = logging.getLogger(__name__)

EXCLUDED_STAGES = frozenset({"lost", "dormant"})
ERROR_POLICIES = ("raise", "skip")


class PipelineAggregator:
    """Forecasts commission fees for the active pipeline."""

    def __init__(
        self,
        resolver: FeeStructureResolver | None = None,
        commission_calculator: CommissionCalculator | None = None,
        withholding_calculator: WithholdingCalculator | None = None,
    ):
        self.resolver = resolver or FeeStructureResolver()
        self.withholding_calculator = withholding_calculator or WithholdingCalculator()
        self.commission_calculator = commission_calculator or CommissionCalculator(self.withholding_calculator)

    def calculate(
        self,
        opportunities: list[Opportunity],
        fee_structures: list[FeeStructure],
        withholding_profiles: list[WithholdingProfile],
        on_error: str = "raise",
    ) -> PipelineFeesSummary:
        """
        Aggregate gross and probability-weighted fees.

        Lost and dormant opportunities are excluded. With on_error="raise"
        the first failing opportunity aborts the aggregation; with
        on_error="skip" it is left out of the totals and reported in
        `failures`.
        """
        if on_error not in ERROR_POLICIES:
            raise ValueError(f"Invalid on_error: {on_error}. Must be one of {ERROR_POLICIES}")

        summary = PipelineFeesSummary()

        for opp in opportunities:
            if opp.stage in EXCLUDED_STAGES:
                continue

            try:
                item = self._calculate_opportunity(opp, fee_structures, withholding_profiles)
            except EngineError as e:
                if on_error == "raise":
                    raise
                logger.warning(f"Skipping opportunity {opp.id}: {e}")
                summary.failures.append(PipelineFailure(opportunity_id=opp.id, error=str(e)))
                continue

            summary.by_opportunity.append(item)
            summary.total_gross_fees += item.commission.gross_fee
            summary.total_weighted_fees += item.weighted_gross

        return summary

    def _calculate_opportunity(
        self,
        opp: Opportunity,
        fee_structures: list[FeeStructure],
        withholding_profiles: list[WithholdingProfile],
    ) -> OpportunityFees:
        fee_structure = self.resolver.resolve(opp, fee_structures)
        withholding_profile = self.withholding_calculator.resolve_profile(opp.country, withholding_profiles)

        # Fee tiers are in USD millions; ASCH value is raw USD
        commission = self.commission_calculator.calculate(
            opp.asch_value_millions, fee_structure, withholding_profile
        )

        return OpportunityFees(
            opportunity=opp,
            fee_structure=fee_structure,
            commission=commission,
            weighted_gross=commission.gross_fee * opp.probability_of_award,
        )

    def forecast(self, summary: PipelineFeesSummary) -> FeesForecast:
        """Group the summary's fees by country, sector and stage."""
        return FeesForecast(
            total_gross_fees=summary.total_gross_fees,
            total_weighted_fees=summary.total_weighted_fees,
            by_country=self._group(summary, lambda opp: opp.country),
            by_sector=self._group(summary, lambda opp: opp.sector),
            by_stage=self._group(summary, lambda opp: opp.stage),
        )

    @staticmethod
    def _group(summary: PipelineFeesSummary, key_fn) -> list[ForecastBucket]:
        buckets: dict[str, ForecastBucket] = {}
        for item in summary.by_opportunity:
            key = key_fn(item.opportunity)
            bucket = buckets.setdefault(key, ForecastBucket(key=key))
            bucket.gross += item.commission.gross_fee
            bucket.weighted += item.weighted_gross
        return sorted(buckets.values(), key=lambda b: b.gross, reverse=True)
