"""
Engine Errors

All engine errors are ValueError subclasses so callers that treat ValueError
as "bad input" keep working. ConfigurationIncompleteError marks failures
caused by missing reference data (rates, fee structures) rather than by the
request itself.
"""


class EngineError(ValueError):
    """Base class for every error raised by the engine."""


class NegativeDealValueError(EngineError):
    def __init__(self, deal_millions) -> None:
        super().__init__(f"Deal value cannot be negative, got: {deal_millions}")
        self.deal_millions = deal_millions


class DivisionByZeroError(EngineError):
    def __init__(self, currency: str) -> None:
        super().__init__(f"Exchange rate is zero for {currency}")
        self.currency = currency


class ConfigurationIncompleteError(EngineError):
    """Reference data needed for the calculation is missing."""

    user_message = "Pipeline configuration incomplete"


class RateNotFoundError(ConfigurationIncompleteError):
    def __init__(self, from_currency: str, to_currency: str) -> None:
        super().__init__(f"Exchange rate not found: {from_currency} -> {to_currency}")
        self.from_currency = from_currency
        self.to_currency = to_currency


class NoFeeStructureFoundError(ConfigurationIncompleteError):
    def __init__(self, opportunity_id: str | None = None) -> None:
        target = f" for opportunity {opportunity_id}" if opportunity_id else ""
        super().__init__(f"No fee structure found{target}: no global default fee structure is configured")
        self.opportunity_id = opportunity_id
