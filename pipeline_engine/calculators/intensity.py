"""
Intensity Calculators

Engagement signals for opportunities: temperature, composite intensity score,
the weekly activity required to meet a quarter plan, and pipeline health.
"""

import math
from collections import Counter
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from ..models import (
    IntensityConfig,
    IntensityThresholds,
    Interaction,
    Opportunity,
    OpportunityScorecard,
    PipelinePulse,
    QuarterPlanTargets,
    RequiredIntensity,
)

WEEKS_PER_QUARTER = 13


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_date(value: str | date) -> date:
    """Accept a date, a YYYY-MM-DD string or a full ISO timestamp."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def days_since(reference: str | date, today: str | date) -> int:
    """Whole days elapsed between reference and today."""
    return (parse_date(today) - parse_date(reference)).days


class TemperatureClassifier:
    """Maps recency of the last touchpoint to a temperature bucket."""

    FIXED_STAGE_TEMPERATURES = {
        "won": "cold",
        "lost": "cold",
        "dormant": "dormant",
    }

    def classify(self, days_since_last_touch: int, thresholds: IntensityThresholds) -> str:
        """Each threshold is inclusive: a value on a boundary is the hotter bucket."""
        if days_since_last_touch <= thresholds.hot_days:
            return "hot"
        if days_since_last_touch <= thresholds.warm_days:
            return "warm"
        if days_since_last_touch <= thresholds.cool_days:
            return "cool"
        if days_since_last_touch <= thresholds.cold_days:
            return "cold"
        return "dormant"

    def classify_opportunity(
        self, opportunity: Opportunity, days_since_last_touch: int, thresholds: IntensityThresholds
    ) -> str:
        """Closed or parked opportunities take their temperature from the stage."""
        fixed = self.FIXED_STAGE_TEMPERATURES.get(opportunity.stage)
        if fixed is not None:
            return fixed
        return self.classify(days_since_last_touch, thresholds)


class IntensityScoreCalculator:
    """Composite 0-100 engagement score."""

    RECENCY_HORIZON_FACTOR = 1.5
    DIVERSITY_PROXY_FACTOR = 0.8

    def score(
        self,
        touchpoints: int,
        expected_touchpoints: int,
        days_since_last_touch: int,
        high_quality_pct: float,
        config: IntensityConfig,
    ) -> int:
        """
        Weighted sum of four sub-scores, each in [0, 1]:

        - frequency: touchpoints vs expected
        - recency: linear decay to 0 at 1.5x the cold threshold
        - quality: high-quality share vs the benchmark target
        - diversity: frequency * 0.8 (proxy until interaction variety is measured)
        """
        weights = config.weights

        frequency = self._clamp(touchpoints / expected_touchpoints) if expected_touchpoints > 0 else 0.0

        if days_since_last_touch <= 0:
            recency = 1.0
        else:
            horizon = config.thresholds.cold_days * self.RECENCY_HORIZON_FACTOR
            recency = self._clamp(1 - days_since_last_touch / horizon)

        target = config.benchmarks.high_quality_pct_target
        quality = self._clamp(high_quality_pct / target) if target > 0 else 0.0

        diversity = frequency * self.DIVERSITY_PROXY_FACTOR

        raw = (
            frequency * weights.touchpoint_frequency
            + recency * weights.recency
            + quality * weights.high_quality_ratio
            + diversity * weights.diversity
        )
        return max(0, min(100, round_half_up(raw * 100)))

    @staticmethod
    def _clamp(value: float) -> float:
        return max(0.0, min(1.0, value))


class RequiredIntensityCalculator:
    """Inverts quarter targets into the weekly rate still required."""

    def calculate(self, plan: QuarterPlanTargets, weeks_remaining: int) -> RequiredIntensity:
        """
        Spread the full-quarter totals over the weeks remaining, rounding up
        so rounding never lowers the requirement.
        """
        if weeks_remaining <= 0:
            return RequiredIntensity()

        total_interactions = plan.target_interactions_per_week * WEEKS_PER_QUARTER
        total_meetings = plan.target_meetings_per_week * WEEKS_PER_QUARTER
        total_contacts = plan.target_new_contacts

        return RequiredIntensity(
            interactions_per_week=math.ceil(total_interactions / weeks_remaining),
            meetings_per_week=math.ceil(total_meetings / weeks_remaining),
            new_contacts_per_week=math.ceil(total_contacts / weeks_remaining),
        )


class PipelineHealthAssessor:
    """Grades the pipeline as healthy, attention or critical."""

    HEALTHY_ACTIVITY_RATIO = 0.8
    HEALTHY_HOT_RATIO = 0.4
    ATTENTION_ACTIVITY_RATIO = 0.5
    ATTENTION_HOT_RATIO = 0.2

    def assess(self, actual_weekly: float, required_weekly: float, hot_opps: int, total_active_opps: int) -> str:
        activity_ratio = actual_weekly / required_weekly if required_weekly > 0 else 1.0
        hot_ratio = hot_opps / total_active_opps if total_active_opps > 0 else 0.0

        if activity_ratio >= self.HEALTHY_ACTIVITY_RATIO and hot_ratio >= self.HEALTHY_HOT_RATIO:
            return "healthy"
        if activity_ratio >= self.ATTENTION_ACTIVITY_RATIO or hot_ratio >= self.ATTENTION_HOT_RATIO:
            return "attention"
        return "critical"

    def pulse(self, temperatures: list[str], actual_weekly: float, required_weekly: float) -> PipelinePulse:
        """Health from the temperatures of the active opportunities."""
        hot_count = sum(1 for t in temperatures if t == "hot")
        cold_alerts = sum(1 for t in temperatures if t in ("cold", "dormant"))
        return PipelinePulse(
            health=self.assess(actual_weekly, required_weekly, hot_count, len(temperatures)),
            hot_count=hot_count,
            cold_alerts=cold_alerts,
            active_count=len(temperatures),
        )


class OpportunityScorecardBuilder:
    """Derives intensity inputs from an opportunity's interaction history."""

    def __init__(
        self,
        classifier: TemperatureClassifier | None = None,
        score_calculator: IntensityScoreCalculator | None = None,
    ):
        self.classifier = classifier or TemperatureClassifier()
        self.score_calculator = score_calculator or IntensityScoreCalculator()

    def build(
        self,
        opportunity: Opportunity,
        interactions: list[Interaction],
        config: IntensityConfig,
        today: str | date,
    ) -> OpportunityScorecard:
        own = [ix for ix in interactions if ix.opportunity_id == opportunity.id]

        # Latest interaction is the last touchpoint; updated_at stands in when there is none
        if own:
            last_touch = max(parse_date(ix.date) for ix in own)
        elif opportunity.updated_at:
            last_touch = parse_date(opportunity.updated_at)
        else:
            last_touch = parse_date(today)
        days = days_since(last_touch, today)

        high_quality = sum(1 for ix in own if ix.quality == "high")
        high_quality_pct = high_quality / len(own) if own else 0.0

        score = self.score_calculator.score(
            touchpoints=len(own),
            expected_touchpoints=config.benchmarks.touchpoints_per_active_opp,
            days_since_last_touch=days,
            high_quality_pct=high_quality_pct,
            config=config,
        )

        return OpportunityScorecard(
            opportunity_id=opportunity.id,
            temperature=self.classifier.classify_opportunity(opportunity, days, config.thresholds),
            intensity_score=score,
            total_touchpoints=len(own),
            high_quality_pct=high_quality_pct,
            days_since_last_touchpoint=days,
            type_distribution=Counter(ix.type for ix in own).most_common(),
        )
