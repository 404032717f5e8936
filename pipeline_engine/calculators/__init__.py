"""
Calculators Package

Provides all calculation components of the engine.
"""

from .calibration import CalibrationEngine
from .commission import CommissionCalculator
from .currency import build_rate_map, convert, convert_from_usd, convert_to_usd
from .intensity import (
    IntensityScoreCalculator,
    OpportunityScorecardBuilder,
    PipelineHealthAssessor,
    RequiredIntensityCalculator,
    TemperatureClassifier,
)
from .resolver import FeeStructureResolver
from .withholding import WithholdingCalculator

__all__ = [
    "build_rate_map",
    "convert",
    "convert_to_usd",
    "convert_from_usd",
    "FeeStructureResolver",
    "CommissionCalculator",
    "WithholdingCalculator",
    "TemperatureClassifier",
    "IntensityScoreCalculator",
    "RequiredIntensityCalculator",
    "PipelineHealthAssessor",
    "OpportunityScorecardBuilder",
    "CalibrationEngine",
]
