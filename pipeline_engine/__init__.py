"""
PIPELINE FEE & INTENSITY ENGINE
Tiered commissions, fee-structure resolution, currency conversion and
opportunity engagement scoring.
"""

from .aggregator import PipelineAggregator
from .errors import (
    ConfigurationIncompleteError,
    DivisionByZeroError,
    EngineError,
    NegativeDealValueError,
    NoFeeStructureFoundError,
    RateNotFoundError,
)
from .processor import EngineProcessor

__all__ = [
    'EngineProcessor',
    'PipelineAggregator',
    'EngineError',
    'ConfigurationIncompleteError',
    'NegativeDealValueError',
    'RateNotFoundError',
    'DivisionByZeroError',
    'NoFeeStructureFoundError',
]
