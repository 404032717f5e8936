"""
Engine Processor - Main Orchestrator

Dictionary-in / dictionary-out entry points used by the HTTP and Lambda
surfaces. Each operation follows the same pipeline:
1. Parse input into models
2. Validate
3. Calculate
4. Build output
"""

import logging
from typing import Any, Dict

from .aggregator import PipelineAggregator
from .calculators import (
    CalibrationEngine,
    CommissionCalculator,
    FeeStructureResolver,
    IntensityScoreCalculator,
    OpportunityScorecardBuilder,
    PipelineHealthAssessor,
    RequiredIntensityCalculator,
    TemperatureClassifier,
    WithholdingCalculator,
    build_rate_map,
    convert,
    convert_to_usd,
)
from .models import (
    MILLION,
    ExchangeRate,
    FeeStructure,
    HistoricalActivity,
    IntensityConfig,
    Interaction,
    Opportunity,
    QuarterPlanTargets,
    WithholdingProfile,
    to_decimal,
)
from .output import OutputBuilder, to_number
from .validators import InputValidator

logger = logging.getLogger(__name__)


class EngineProcessor:
    """
    Main orchestrator for engine requests.

    Holds no per-request state; one instance can serve every request.
    """

    def __init__(self, default_error_policy: str = "raise"):
        self.default_error_policy = default_error_policy
        self.validator = InputValidator()
        self.resolver = FeeStructureResolver()
        self.withholding_calculator = WithholdingCalculator()
        self.commission_calculator = CommissionCalculator(self.withholding_calculator)
        self.aggregator = PipelineAggregator(self.resolver, self.commission_calculator, self.withholding_calculator)
        self.classifier = TemperatureClassifier()
        self.score_calculator = IntensityScoreCalculator()
        self.scorecard_builder = OpportunityScorecardBuilder(self.classifier, self.score_calculator)
        self.required_intensity_calculator = RequiredIntensityCalculator()
        self.health_assessor = PipelineHealthAssessor()
        self.calibration_engine = CalibrationEngine()
        self.output_builder = OutputBuilder()

    # =========================================================================
    # FEES
    # =========================================================================

    def commission_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Commission for one deal against one fee structure.

        The deal is given either in USD millions (`deal_millions`) or as a
        raw amount in any currency (`amount`, `currency`, `rates`).
        """
        fee_structure = FeeStructure.from_dict(data["fee_structure"])
        self.validator.validate_fee_structure(fee_structure)

        profile = None
        if data.get("withholding_profile"):
            profile = WithholdingProfile.from_dict(data["withholding_profile"])
            self.validator.validate_withholding_profiles([profile])

        deal_millions = self._deal_millions(data)
        result = self.commission_calculator.calculate(deal_millions, fee_structure, profile)
        output = self.output_builder.build_commission(result)
        output["fee_structure"] = self.output_builder.build_fee_structure(fee_structure)
        return output

    def _deal_millions(self, data: Dict[str, Any]):
        if "deal_millions" in data:
            return to_decimal(data["deal_millions"])

        currency = data.get("currency", "USD")
        self.validator.validate_currency(currency)
        rates = [ExchangeRate.from_dict(r) for r in data.get("rates", [])]
        self.validator.validate_exchange_rates(rates)
        amount_usd = convert_to_usd(data["amount"], currency, build_rate_map(rates))
        return amount_usd / MILLION

    def resolve_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        opportunity = Opportunity.from_dict(data["opportunity"])
        fee_structures = [FeeStructure.from_dict(fs) for fs in data.get("fee_structures", [])]
        self.validator.validate_fee_structures(fee_structures)

        fee_structure = self.resolver.resolve(opportunity, fee_structures)
        return {
            "opportunity_id": opportunity.id,
            "fee_structure": self.output_builder.build_fee_structure(fee_structure),
        }

    def pipeline_fees_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        opportunities = [Opportunity.from_dict(o) for o in data.get("opportunities", [])]
        fee_structures = [FeeStructure.from_dict(fs) for fs in data.get("fee_structures", [])]
        profiles = [WithholdingProfile.from_dict(p) for p in data.get("withholding_profiles", [])]

        self.validator.validate_opportunities(opportunities)
        self.validator.validate_fee_structures(fee_structures)
        self.validator.validate_withholding_profiles(profiles)

        on_error = data.get("on_error") or self.default_error_policy
        summary = self.aggregator.calculate(opportunities, fee_structures, profiles, on_error=on_error)
        logger.info(
            f"Pipeline fees: {len(summary.by_opportunity)} included, {len(summary.failures)} failed"
        )
        return self.output_builder.build_pipeline(summary, self.aggregator.forecast(summary))

    def convert_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        from_currency = data["from_currency"]
        to_currency = data["to_currency"]
        self.validator.validate_currency(from_currency)
        self.validator.validate_currency(to_currency)

        rates = [ExchangeRate.from_dict(r) for r in data.get("rates", [])]
        self.validator.validate_exchange_rates(rates)

        amount = to_decimal(data["amount"])
        converted = convert(amount, from_currency, to_currency, build_rate_map(rates))
        return {
            "amount": to_number(amount),
            "from_currency": from_currency,
            "to_currency": to_currency,
            "converted": to_number(converted),
        }

    # =========================================================================
    # INTENSITY
    # =========================================================================

    def intensity_score_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Score an opportunity.

        With `opportunity` and `interactions` (plus `today`) the inputs are
        derived from the interaction history; otherwise the raw inputs
        `touchpoints`, `days_since_last_touch` and `high_quality_pct` are used.
        """
        config = self._config(data)

        if "opportunity" in data:
            opportunity = Opportunity.from_dict(data["opportunity"])
            interactions = [Interaction.from_dict(ix) for ix in data.get("interactions", [])]
            card = self.scorecard_builder.build(opportunity, interactions, config, data["today"])
            return {
                "opportunity_id": card.opportunity_id,
                "temperature": card.temperature,
                "intensity_score": card.intensity_score,
                "total_touchpoints": card.total_touchpoints,
                "high_quality_pct": card.high_quality_pct,
                "days_since_last_touchpoint": card.days_since_last_touchpoint,
                "type_distribution": [[t, n] for t, n in card.type_distribution],
            }

        days = data["days_since_last_touch"]
        expected = data.get("expected_touchpoints", config.benchmarks.touchpoints_per_active_opp)
        score = self.score_calculator.score(
            touchpoints=data.get("touchpoints", 0),
            expected_touchpoints=expected,
            days_since_last_touch=days,
            high_quality_pct=float(data.get("high_quality_pct", 0)),
            config=config,
        )
        return {
            "temperature": self.classifier.classify(days, config.thresholds),
            "intensity_score": score,
        }

    def required_intensity_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        plan = QuarterPlanTargets.from_dict(data["plan"])
        required = self.required_intensity_calculator.calculate(plan, data["weeks_remaining"])
        return {
            "interactions_per_week": required.interactions_per_week,
            "meetings_per_week": required.meetings_per_week,
            "new_contacts_per_week": required.new_contacts_per_week,
        }

    def pipeline_health_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if "temperatures" in data:
            config = self._config(data)
            required = data.get("required_weekly", config.benchmarks.interactions_per_week)
            pulse = self.health_assessor.pulse(data["temperatures"], data["actual_weekly"], required)
            return {
                "health": pulse.health,
                "hot_count": pulse.hot_count,
                "cold_alerts": pulse.cold_alerts,
                "active_count": pulse.active_count,
            }

        health = self.health_assessor.assess(
            data["actual_weekly"], data["required_weekly"], data["hot_opps"], data["total_active_opps"]
        )
        return {"health": health}

    def calibrate_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        config = self._config(data)
        history = HistoricalActivity.from_dict(data["history"])
        calibrated = self.calibration_engine.calibrate(config, history)
        if calibrated is None:
            return {"calibrated": False, "config": None}
        return {"calibrated": True, "config": self.output_builder.build_config(calibrated)}

    def _config(self, data: Dict[str, Any]) -> IntensityConfig:
        config = IntensityConfig.from_dict(data.get("config"))
        self.validator.validate_intensity_config(config)
        return config
