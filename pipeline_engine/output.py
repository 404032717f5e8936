"""
Output Builder

Turns engine results into JSON-ready dictionaries. Decimal values are
emitted as floats without rounding.
"""

from dataclasses import asdict
from decimal import Decimal

from .models import (
    CommissionResult,
    FeeStructure,
    FeesForecast,
    FeeTier,
    ForecastBucket,
    IntensityConfig,
    PipelineFeesSummary,
    WithholdingResult,
)


def to_number(value: Decimal) -> float:
    """Convert Decimal to float for JSON output."""
    return float(value)


def _pct(rate: Decimal) -> str:
    return f"{float(rate) * 100:.2f}%"


def _millions(value: Decimal) -> str:
    return f"{float(value):,.4f}M"


class OutputBuilder:
    """Builds API response payloads."""

    def build_tier(self, tier: FeeTier) -> dict:
        return {
            "label": tier.label,
            "min_millions": to_number(tier.min_millions),
            "max_millions": to_number(tier.max_millions) if tier.max_millions is not None else None,
            "rate": to_number(tier.rate),
        }

    def build_fee_structure(self, fs: FeeStructure) -> dict:
        return {
            "id": fs.id,
            "name": fs.name,
            "is_default": fs.is_default,
            "scope": {"type": fs.scope.type, "value": fs.scope.value},
            "tiers": [self.build_tier(t) for t in fs.sorted_tiers()],
            "effective_date": fs.effective_date,
        }

    def build_withholding(self, result: WithholdingResult) -> dict:
        return {
            "scenario": result.scenario.name,
            "rate": to_number(result.scenario.rate),
            "is_default": result.scenario.is_default,
            "gross_fee": to_number(result.gross_fee),
            "withholding_amount": to_number(result.withholding_amount),
            "net_fee": to_number(result.net_fee),
        }

    def build_commission(self, result: CommissionResult) -> dict:
        """Commission with a human-readable description for each tier."""
        breakdown = []
        for item in result.tier_breakdown:
            breakdown.append({
                "tier": self.build_tier(item.tier),
                "applicable_millions": to_number(item.applicable_millions),
                "fee": to_number(item.fee),
                "description": (
                    f"{_millions(item.applicable_millions)} × {_pct(item.tier.rate)} = {_millions(item.fee)}"
                ),
            })

        verification = result.verification
        return {
            "deal_millions": to_number(result.deal_millions),
            "gross_fee": to_number(result.gross_fee),
            "effective_rate": to_number(result.effective_rate),
            "tier_breakdown": breakdown,
            "withholding": [self.build_withholding(w) for w in result.withholding],
            "verification": {
                "sum_of_tiers": to_number(verification.sum_of_tiers),
                "matches_gross": verification.matches_gross,
            },
        }

    def build_pipeline(self, summary: PipelineFeesSummary, forecast: FeesForecast | None = None) -> dict:
        output = {
            "total_gross_fees": to_number(summary.total_gross_fees),
            "total_weighted_fees": to_number(summary.total_weighted_fees),
            "by_opportunity": [
                {
                    "opportunity_id": item.opportunity.id,
                    "name": item.opportunity.name,
                    "country": item.opportunity.country,
                    "stage": item.opportunity.stage,
                    "fee_structure_id": item.fee_structure.id,
                    "fee_structure_name": item.fee_structure.name,
                    "probability_of_award": to_number(item.opportunity.probability_of_award),
                    "weighted_gross": to_number(item.weighted_gross),
                    "commission": self.build_commission(item.commission),
                }
                for item in summary.by_opportunity
            ],
            "failures": [{"opportunity_id": f.opportunity_id, "error": f.error} for f in summary.failures],
        }
        if forecast is not None:
            output["forecast"] = {
                "by_country": [self._bucket(b) for b in forecast.by_country],
                "by_sector": [self._bucket(b) for b in forecast.by_sector],
                "by_stage": [self._bucket(b) for b in forecast.by_stage],
            }
        return output

    @staticmethod
    def _bucket(bucket: ForecastBucket) -> dict:
        return {"key": bucket.key, "gross": to_number(bucket.gross), "weighted": to_number(bucket.weighted)}

    @staticmethod
    def build_config(config: IntensityConfig) -> dict:
        return asdict(config)
