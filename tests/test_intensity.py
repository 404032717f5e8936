"""
Unit Tests for Intensity Calculators

Temperature buckets, composite score, required weekly activity,
pipeline health and per-opportunity scorecards.
"""

from datetime import date, datetime

import pytest

from pipeline_engine.calculators.intensity import (
    IntensityScoreCalculator,
    OpportunityScorecardBuilder,
    PipelineHealthAssessor,
    RequiredIntensityCalculator,
    TemperatureClassifier,
    days_since,
    parse_date,
    round_half_up,
)
from pipeline_engine.models import (
    DEFAULT_INTENSITY_CONFIG,
    IntensityBenchmarks,
    IntensityConfig,
    IntensityThresholds,
    Interaction,
    Opportunity,
    QuarterPlanTargets,
)


def opportunity(stage: str = "proposal", updated_at: str = None) -> Opportunity:
    return Opportunity(
        id="opp-1",
        country="CL",
        sector="mining",
        stage=stage,
        asch_value_usd=50_000_000,
        probability_of_award=0.5,
        updated_at=updated_at,
    )


class TestHelpers:

    @pytest.mark.parametrize("value, expected", [(0.5, 1), (1.5, 2), (2.5, 3), (55.75, 56), (2.49, 2)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_parse_date_accepts_timestamps(self):
        assert parse_date("2026-10-01T08:30:00Z") == date(2026, 10, 1)
        assert parse_date(datetime(2026, 10, 1, 8, 30)) == date(2026, 10, 1)
        assert parse_date(date(2026, 10, 1)) == date(2026, 10, 1)

    def test_days_since(self):
        assert days_since("2026-09-30", "2026-10-19") == 19


class TestTemperatureClassifier:

    @pytest.fixture
    def classifier(self):
        return TemperatureClassifier()

    @pytest.mark.parametrize(
        "days, expected",
        [
            (0, "hot"),
            (14, "hot"),
            (15, "warm"),
            (30, "warm"),
            (31, "cool"),
            (60, "cool"),
            (61, "cold"),
            (90, "cold"),
            (91, "dormant"),
            (365, "dormant"),
        ],
    )
    def test_default_thresholds_are_inclusive(self, classifier, days, expected):
        assert classifier.classify(days, IntensityThresholds()) == expected

    def test_custom_thresholds(self, classifier):
        thresholds = IntensityThresholds(hot_days=7, warm_days=14, cool_days=21, cold_days=28)
        assert classifier.classify(10, thresholds) == "warm"
        assert classifier.classify(29, thresholds) == "dormant"

    @pytest.mark.parametrize("stage, expected", [("won", "cold"), ("lost", "cold"), ("dormant", "dormant")])
    def test_stage_overrides_recency(self, classifier, stage, expected):
        assert classifier.classify_opportunity(opportunity(stage), 0, IntensityThresholds()) == expected

    def test_open_stage_uses_recency(self, classifier):
        assert classifier.classify_opportunity(opportunity("negotiation"), 20, IntensityThresholds()) == "warm"


class TestIntensityScore:

    @pytest.fixture
    def calculator(self):
        return IntensityScoreCalculator()

    def test_partial_engagement(self, calculator):
        """
        frequency 1/4 = 0.25, recency 1 - 27/135 = 0.8, quality 0.4/0.4 = 1,
        diversity 0.25 × 0.8 = 0.2
        0.0875 + 0.24 + 0.2 + 0.03 = 0.5575 → 56
        """
        assert calculator.score(1, 4, 27, 0.4, DEFAULT_INTENSITY_CONFIG) == 56

    def test_full_engagement(self, calculator):
        """Diversity caps at 0.8, so the best achievable score is 97."""
        assert calculator.score(2, 2, 0, 0.4, DEFAULT_INTENSITY_CONFIG) == 97

    def test_no_engagement(self, calculator):
        assert calculator.score(0, 2, 200, 0, DEFAULT_INTENSITY_CONFIG) == 0

    def test_over_target_is_clamped(self, calculator):
        assert calculator.score(50, 2, 0, 1.0, DEFAULT_INTENSITY_CONFIG) == 97

    def test_zero_expected_touchpoints(self, calculator):
        """frequency and diversity drop to 0: 0.30 + 0.20 = 50"""
        assert calculator.score(5, 0, 0, 0.4, DEFAULT_INTENSITY_CONFIG) == 50

    def test_zero_quality_target(self, calculator):
        config = IntensityConfig(benchmarks=IntensityBenchmarks(high_quality_pct_target=0))
        # 0.35 + 0.30 + 0.12
        assert calculator.score(2, 2, 0, 1.0, config) == 77

    @pytest.mark.parametrize("touchpoints, days, hq", [(0, 0, 0), (1, 45, 0.1), (3, 400, 0.9), (10, -3, 2.0)])
    def test_score_stays_in_range(self, calculator, touchpoints, days, hq):
        assert 0 <= calculator.score(touchpoints, 2, days, hq, DEFAULT_INTENSITY_CONFIG) <= 100


class TestRequiredIntensity:

    @pytest.fixture
    def calculator(self):
        return RequiredIntensityCalculator()

    def test_spreads_quarter_over_remaining_weeks(self, calculator):
        """
        interactions 8 × 13 / 5 = 20.8 → 21
        meetings     3 × 13 / 5 = 7.8  → 8
        contacts     20 / 5     = 4
        """
        plan = QuarterPlanTargets(target_interactions_per_week=8, target_meetings_per_week=3, target_new_contacts=20)
        required = calculator.calculate(plan, 5)
        assert (required.interactions_per_week, required.meetings_per_week, required.new_contacts_per_week) == (
            21,
            8,
            4,
        )

    def test_full_quarter_keeps_weekly_targets(self, calculator):
        plan = QuarterPlanTargets(target_interactions_per_week=8, target_meetings_per_week=3, target_new_contacts=26)
        required = calculator.calculate(plan, 13)
        assert required.interactions_per_week == 8
        assert required.new_contacts_per_week == 2

    @pytest.mark.parametrize("weeks", [0, -2])
    def test_no_weeks_left(self, calculator, weeks):
        plan = QuarterPlanTargets(target_interactions_per_week=8, target_meetings_per_week=3, target_new_contacts=20)
        required = calculator.calculate(plan, weeks)
        assert (required.interactions_per_week, required.meetings_per_week, required.new_contacts_per_week) == (
            0,
            0,
            0,
        )


class TestPipelineHealth:

    @pytest.fixture
    def assessor(self):
        return PipelineHealthAssessor()

    def test_healthy_on_both_thresholds(self, assessor):
        assert assessor.assess(8, 10, 4, 10) == "healthy"

    def test_attention_on_activity(self, assessor):
        assert assessor.assess(5, 10, 0, 10) == "attention"

    def test_attention_on_hot_share(self, assessor):
        assert assessor.assess(0, 10, 2, 10) == "attention"

    def test_critical(self, assessor):
        assert assessor.assess(4, 10, 1, 10) == "critical"

    def test_no_requirement_and_no_opportunities(self, assessor):
        """Activity ratio defaults to 1, hot ratio to 0."""
        assert assessor.assess(0, 0, 0, 0) == "attention"

    def test_pulse_counts(self, assessor):
        pulse = assessor.pulse(["hot", "hot", "warm", "cold", "dormant"], actual_weekly=8, required_weekly=8)
        assert (pulse.hot_count, pulse.cold_alerts, pulse.active_count) == (2, 2, 5)
        assert pulse.health == "healthy"


class TestOpportunityScorecard:

    @pytest.fixture
    def builder(self):
        return OpportunityScorecardBuilder()

    @pytest.fixture
    def interactions(self):
        return [
            Interaction(date="2026-10-10", type="meeting", quality="high", opportunity_id="opp-1"),
            Interaction(date="2026-10-01", type="call", quality="medium", opportunity_id="opp-1"),
            Interaction(date="2026-09-20", type="meeting", quality="high", opportunity_id="opp-1"),
            Interaction(date="2026-10-18", type="email", quality="high", opportunity_id="opp-2"),
            Interaction(date="2026-10-18", type="email", quality="high"),
        ]

    def test_uses_only_own_interactions(self, builder, interactions):
        card = builder.build(opportunity(), interactions, DEFAULT_INTENSITY_CONFIG, "2026-10-19")
        assert card.total_touchpoints == 3
        assert card.days_since_last_touchpoint == 9
        assert card.high_quality_pct == pytest.approx(2 / 3)

    def test_temperature_and_score(self, builder, interactions):
        """frequency 1, recency 1 - 9/135, quality 1, diversity 0.8 → 95"""
        card = builder.build(opportunity(), interactions, DEFAULT_INTENSITY_CONFIG, "2026-10-19")
        assert card.temperature == "hot"
        assert card.intensity_score == 95

    def test_type_distribution_most_common_first(self, builder, interactions):
        card = builder.build(opportunity(), interactions, DEFAULT_INTENSITY_CONFIG, "2026-10-19")
        assert card.type_distribution == [("meeting", 2), ("call", 1)]

    def test_falls_back_to_updated_at(self, builder):
        card = builder.build(opportunity(updated_at="2026-08-20T12:00:00Z"), [], DEFAULT_INTENSITY_CONFIG, "2026-10-19")
        assert card.days_since_last_touchpoint == 60
        assert card.temperature == "cool"
        assert card.total_touchpoints == 0

    def test_stage_override_applies(self, builder, interactions):
        card = builder.build(opportunity("won"), interactions, DEFAULT_INTENSITY_CONFIG, "2026-10-19")
        assert card.temperature == "cold"
