"""
Withholding Calculator

Applies jurisdiction withholding scenarios to a gross commission fee.
"""

from decimal import Decimal

from ..models import WithholdingProfile, WithholdingResult, WithholdingScenario, to_decimal


class WithholdingCalculator:
    """Splits gross fees into withholding and net amounts."""

    def calculate(self, gross_fee, profile: WithholdingProfile) -> list[WithholdingResult]:
        """One result per scenario of the profile, in profile order."""
        gross_fee = to_decimal(gross_fee)
        results = []
        for scenario in profile.scenarios:
            withholding_amount = gross_fee * scenario.rate
            results.append(WithholdingResult(
                scenario=scenario,
                gross_fee=gross_fee,
                withholding_amount=withholding_amount,
                net_fee=gross_fee - withholding_amount,
            ))
        return results

    def resolve_profile(
        self, jurisdiction_country: str, profiles: list[WithholdingProfile]
    ) -> WithholdingProfile | None:
        """Profile of the paying jurisdiction, or None when no withholding applies."""
        for profile in profiles:
            if profile.jurisdiction_country == jurisdiction_country:
                return profile
        return None

    @staticmethod
    def default_scenario(profile: WithholdingProfile) -> WithholdingScenario:
        """The scenario flagged as default, falling back to the first one."""
        for scenario in profile.scenarios:
            if scenario.is_default:
                return scenario
        return profile.scenarios[0]

    def default_net_fee(self, gross_fee, profile: WithholdingProfile) -> Decimal:
        """Net fee under the profile's default scenario."""
        gross_fee = to_decimal(gross_fee)
        return gross_fee - gross_fee * self.default_scenario(profile).rate
