"""
Fee Structure Resolver

Picks the one fee structure that applies to an opportunity.
"""

from ..errors import NoFeeStructureFoundError
from ..models import FeeStructure, Opportunity


class FeeStructureResolver:
    """Resolves fee structures by scope priority."""

    def resolve(self, opportunity: Opportunity, fee_structures: list[FeeStructure]) -> FeeStructure:
        """
        Resolve the fee structure for an opportunity.

        Priority order (first match wins):
        1. Project override (opportunity.fee_structure_id)
        2. Country scope
        3. Sector scope
        4. Global default

        A missing global default is a configuration error and is never
        replaced by an arbitrary structure.
        """
        # Priority 1: Project override
        if opportunity.fee_structure_id:
            for fs in fee_structures:
                if fs.id == opportunity.fee_structure_id:
                    return fs

        # Priority 2: Country
        for fs in fee_structures:
            if fs.scope.type == "country" and fs.scope.value == opportunity.country:
                return fs

        # Priority 3: Sector
        for fs in fee_structures:
            if fs.scope.type == "sector" and fs.scope.value == opportunity.sector:
                return fs

        # Priority 4: Global default
        for fs in fee_structures:
            if fs.is_global_default:
                return fs

        raise NoFeeStructureFoundError(opportunity.id)
