"""
Commission Calculator

Tiered marginal commission on a deal value, like progressive tax brackets.
Tiers always come from the FeeStructure passed in; nothing is hardcoded.
"""

import logging
from decimal import Decimal

from ..errors import NegativeDealValueError
from ..models import (
    CommissionResult,
    CommissionVerification,
    FeeStructure,
    FeeTier,
    TierBreakdownItem,
    WithholdingProfile,
    to_decimal,
)
from .withholding import WithholdingCalculator

logger = logging.getLogger(__name__)


class CommissionCalculator:
    """Calculates gross commission, tier breakdown and withholding."""

    VERIFICATION_TOLERANCE = Decimal("0.0001")
    GAP_TOLERANCE = Decimal("0.001")

    def __init__(self, withholding_calculator: WithholdingCalculator | None = None):
        self.withholding_calculator = withholding_calculator or WithholdingCalculator()

    def calculate(
        self,
        deal_millions,
        fee_structure: FeeStructure,
        withholding_profile: WithholdingProfile | None = None,
    ) -> CommissionResult:
        """
        Calculate commission for a deal in USD millions.

        Each tier charges its rate only on the slice of the deal between its
        bounds. Boundaries are min-inclusive / max-exclusive, so a deal
        landing exactly on a boundary is fully charged by the lower tier.
        """
        deal_millions = to_decimal(deal_millions)
        if deal_millions < 0:
            raise NegativeDealValueError(deal_millions)

        tiers = fee_structure.sorted_tiers()
        self._warn_on_gaps(fee_structure.name, tiers)

        breakdown = []
        gross_fee = Decimal("0")

        for tier in tiers:
            applicable = self._applicable_millions(deal_millions, tier)
            if applicable > 0:
                fee = applicable * tier.rate
                gross_fee += fee
                breakdown.append(TierBreakdownItem(tier=tier, applicable_millions=applicable, fee=fee))

        effective_rate = gross_fee / deal_millions if deal_millions > 0 else Decimal("0")

        withholding = []
        if withholding_profile is not None:
            withholding = self.withholding_calculator.calculate(gross_fee, withholding_profile)

        return CommissionResult(
            deal_millions=deal_millions,
            gross_fee=gross_fee,
            effective_rate=effective_rate,
            tier_breakdown=breakdown,
            withholding=withholding,
            verification=self._verify(breakdown, gross_fee),
        )

    @staticmethod
    def _applicable_millions(deal_millions: Decimal, tier: FeeTier) -> Decimal:
        """Slice of the deal falling inside the tier (0 when outside)."""
        effective_max = deal_millions if tier.is_open_ended else tier.max_millions
        return max(Decimal("0"), min(deal_millions, effective_max) - tier.min_millions)

    def _verify(self, breakdown: list[TierBreakdownItem], gross_fee: Decimal) -> CommissionVerification:
        """Re-sum the breakdown independently and compare with the gross fee."""
        sum_of_tiers = sum((item.fee for item in breakdown), Decimal("0"))
        return CommissionVerification(
            sum_of_tiers=sum_of_tiers,
            matches_gross=abs(sum_of_tiers - gross_fee) < self.VERIFICATION_TOLERANCE,
        )

    def _warn_on_gaps(self, structure_name: str, tiers: list[FeeTier]) -> None:
        """Log gaps or overlaps between consecutive tiers."""
        for i, (current, following) in enumerate(zip(tiers, tiers[1:]), start=1):
            if current.is_open_ended:
                logger.warning(
                    'Fee structure "%s": open-ended tier %d is followed by tier %d',
                    structure_name, i, i + 1,
                )
            elif abs(current.max_millions - following.min_millions) > self.GAP_TOLERANCE:
                logger.warning(
                    'Fee structure "%s": gap between tier %d (max=%sM) and tier %d (min=%sM)',
                    structure_name, i, current.max_millions, i + 1, following.min_millions,
                )
