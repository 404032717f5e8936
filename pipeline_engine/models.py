"""
Domain Models for the Pipeline Fee Engine

These dataclasses provide type-safe representations of all business entities.
Monetary values use Decimal for precision; engagement scoring uses float.

Units are explicit in field names: `*_millions` fields are USD millions,
`*_usd` fields are raw USD.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

MILLION = Decimal("1000000")

CURRENCIES = frozenset({
    # North America
    "USD", "CAD", "MXN",
    # Central America & Caribbean
    "GTQ", "HNL", "NIO", "CRC", "PAB", "BZD", "SVC",
    "DOP", "HTG", "JMD", "TTD", "CUP", "BBD", "BSD",
    "AWG", "ANG", "KYD", "XCD", "BMD",
    # South America
    "BRL", "ARS", "CLP", "PEN", "COP", "UYU", "PYG",
    "BOB", "VES", "GYD", "SRD", "FKP",
    # Special
    "UF", "EUR",
})

STAGES = ("identification", "qualification", "proposal", "negotiation", "won", "lost", "dormant")
TEMPERATURES = ("hot", "warm", "cool", "cold", "dormant")
SCOPE_TYPES = ("global", "country", "sector", "project")

_OPEN_ENDED = {"inf", "infinity", "+inf", "unbounded"}


def to_decimal(value) -> Decimal:
    """
    Convert a number (or numeric string) to Decimal without float artifacts.

    Raises ValueError for malformed or non-finite input.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"Number must be finite, got: {value!r}")
    return result


def _optional_max(value) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in _OPEN_ENDED:
        return None
    if isinstance(value, float) and value == float("inf"):
        return None
    return to_decimal(value)


# =============================================================================
# REFERENCE DATA: CURRENCY, FEES, WITHHOLDING
# =============================================================================


@dataclass
class ExchangeRate:
    """1 from_currency = rate to_currency."""

    from_currency: str
    to_currency: str
    rate: Decimal
    updated_at: str | None = None
    source: str = "manual"

    @classmethod
    def from_dict(cls, data: dict) -> "ExchangeRate":
        return cls(
            from_currency=data["from_currency"],
            to_currency=data["to_currency"],
            rate=to_decimal(data["rate"]),
            updated_at=data.get("updated_at"),
            source=data.get("source", "manual"),
        )


@dataclass
class FeeTier:
    """A single marginal bracket, expressed in USD millions."""

    label: str
    min_millions: Decimal
    max_millions: Decimal | None  # None = open-ended last tier
    rate: Decimal

    @property
    def is_open_ended(self) -> bool:
        return self.max_millions is None

    @classmethod
    def from_dict(cls, data: dict) -> "FeeTier":
        return cls(
            label=data.get("label", ""),
            min_millions=to_decimal(data["min_millions"]),
            max_millions=_optional_max(data.get("max_millions")),
            rate=to_decimal(data["rate"]),
        )


@dataclass
class FeeStructureScope:
    """Where a fee structure applies: global, one country, one sector or one project."""

    type: str = "global"
    value: str | None = None  # country code, sector or project id

    @classmethod
    def from_dict(cls, data: dict | None) -> "FeeStructureScope":
        if not data:
            return cls()
        value = data.get("value")
        if value is None:
            # Legacy shape: {"type": "country", "country": "PE"}
            value = data.get("country") or data.get("sector") or data.get("project_id")
        return cls(type=data.get("type", "global"), value=value)


@dataclass
class FeeStructure:
    """A named set of tiers with an applicability scope."""

    id: str
    name: str
    tiers: list[FeeTier]
    scope: FeeStructureScope = field(default_factory=FeeStructureScope)
    is_default: bool = False
    effective_date: str | None = None
    notes: str = ""

    @property
    def is_global_default(self) -> bool:
        return self.is_default and self.scope.type == "global"

    def sorted_tiers(self) -> list[FeeTier]:
        return sorted(self.tiers, key=lambda tier: tier.min_millions)

    @classmethod
    def from_dict(cls, data: dict) -> "FeeStructure":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            tiers=[FeeTier.from_dict(t) for t in data.get("tiers", [])],
            scope=FeeStructureScope.from_dict(data.get("scope")),
            is_default=data.get("is_default", False),
            effective_date=data.get("effective_date"),
            notes=data.get("notes", ""),
        )


@dataclass
class WithholdingScenario:
    """A named withholding rate (e.g. a tax-code article) for one jurisdiction."""

    name: str
    rate: Decimal
    description: str = ""
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "WithholdingScenario":
        return cls(
            name=data["name"],
            rate=to_decimal(data["rate"]),
            description=data.get("description", ""),
            is_default=data.get("is_default", False),
        )


@dataclass
class WithholdingProfile:
    """All withholding scenarios of the jurisdiction paying the fee."""

    jurisdiction_country: str
    name: str
    scenarios: list[WithholdingScenario]
    id: str | None = None
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "WithholdingProfile":
        return cls(
            jurisdiction_country=data["jurisdiction_country"],
            name=data.get("name", data["jurisdiction_country"]),
            scenarios=[WithholdingScenario.from_dict(s) for s in data.get("scenarios", [])],
            id=data.get("id"),
            notes=data.get("notes", ""),
        )


# =============================================================================
# OPPORTUNITY
# =============================================================================


@dataclass
class Opportunity:
    """The engine-relevant subset of a pipeline opportunity."""

    id: str
    country: str
    sector: str
    stage: str
    asch_value_usd: Decimal
    probability_of_award: Decimal
    name: str = ""
    fee_structure_id: str | None = None
    updated_at: str | None = None

    @property
    def asch_value_millions(self) -> Decimal:
        """ASCH share of the deal in USD millions, the unit fee tiers use."""
        return self.asch_value_usd / MILLION

    @classmethod
    def from_dict(cls, data: dict) -> "Opportunity":
        return cls(
            id=data["id"],
            country=data["country"],
            sector=data.get("sector", "other"),
            stage=data["stage"],
            asch_value_usd=to_decimal(data.get("asch_value_usd", 0)),
            probability_of_award=to_decimal(data.get("probability_of_award", 0)),
            name=data.get("name", ""),
            fee_structure_id=data.get("fee_structure_id"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class Interaction:
    """A logged touchpoint with a contact, optionally tied to an opportunity."""

    date: str
    type: str = "other"
    quality: str = "medium"
    opportunity_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Interaction":
        return cls(
            date=data["date"],
            type=data.get("type", "other"),
            quality=data.get("quality", "medium"),
            opportunity_id=data.get("opportunity_id"),
        )


# =============================================================================
# INTENSITY CONFIGURATION
# =============================================================================


@dataclass
class IntensityThresholds:
    """Upper bounds (inclusive, in days) of each temperature bucket."""

    hot_days: int = 14
    warm_days: int = 30
    cool_days: int = 60
    cold_days: int = 90

    @classmethod
    def from_dict(cls, data: dict) -> "IntensityThresholds":
        return cls(**{k: int(v) for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class IntensityWeights:
    """Composite score weights; expected to sum to 1."""

    touchpoint_frequency: float = 0.35
    recency: float = 0.30
    high_quality_ratio: float = 0.20
    diversity: float = 0.15

    @property
    def total(self) -> float:
        return self.touchpoint_frequency + self.recency + self.high_quality_ratio + self.diversity

    @classmethod
    def from_dict(cls, data: dict) -> "IntensityWeights":
        return cls(**{k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class IntensityBenchmarks:
    """Target activity rates used as scoring denominators."""

    interactions_per_week: int = 8
    meetings_per_week: int = 3
    new_contacts_per_week: int = 2
    high_quality_pct_target: float = 0.40
    touchpoints_per_active_opp: int = 2

    @classmethod
    def from_dict(cls, data: dict) -> "IntensityBenchmarks":
        defaults = cls()
        return cls(
            interactions_per_week=data.get("interactions_per_week", defaults.interactions_per_week),
            meetings_per_week=data.get("meetings_per_week", defaults.meetings_per_week),
            new_contacts_per_week=data.get("new_contacts_per_week", defaults.new_contacts_per_week),
            high_quality_pct_target=float(data.get("high_quality_pct_target", defaults.high_quality_pct_target)),
            touchpoints_per_active_opp=data.get("touchpoints_per_active_opp", defaults.touchpoints_per_active_opp),
        )


@dataclass
class IntensityConfig:
    """Intensity scoring configuration, owned by the caller's config store."""

    thresholds: IntensityThresholds = field(default_factory=IntensityThresholds)
    weights: IntensityWeights = field(default_factory=IntensityWeights)
    benchmarks: IntensityBenchmarks = field(default_factory=IntensityBenchmarks)
    auto_calibrate: bool = False
    last_calibrated_at: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "IntensityConfig":
        if not data:
            return cls()
        return cls(
            thresholds=IntensityThresholds.from_dict(data.get("thresholds", {})),
            weights=IntensityWeights.from_dict(data.get("weights", {})),
            benchmarks=IntensityBenchmarks.from_dict(data.get("benchmarks", {})),
            auto_calibrate=data.get("auto_calibrate", False),
            last_calibrated_at=data.get("last_calibrated_at"),
            id=data.get("id"),
        )


DEFAULT_INTENSITY_CONFIG = IntensityConfig()


@dataclass
class QuarterPlanTargets:
    """Activity targets of a quarter plan."""

    target_interactions_per_week: int
    target_meetings_per_week: int
    target_new_contacts: int  # whole-quarter total

    @classmethod
    def from_dict(cls, data: dict) -> "QuarterPlanTargets":
        return cls(
            target_interactions_per_week=data.get("target_interactions_per_week", 0),
            target_meetings_per_week=data.get("target_meetings_per_week", 0),
            target_new_contacts=data.get("target_new_contacts", 0),
        )


@dataclass
class HistoricalActivity:
    """Activity totals over a historical window, used for calibration."""

    total_interactions: int
    total_meetings: int
    total_new_contacts: int
    total_weeks: int
    high_quality_pct: float
    closed_deals: int

    @classmethod
    def from_dict(cls, data: dict) -> "HistoricalActivity":
        return cls(
            total_interactions=data.get("total_interactions", 0),
            total_meetings=data.get("total_meetings", 0),
            total_new_contacts=data.get("total_new_contacts", 0),
            total_weeks=data.get("total_weeks", 0),
            high_quality_pct=float(data.get("high_quality_pct", 0)),
            closed_deals=data.get("closed_deals", 0),
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass
class TierBreakdownItem:
    """Contribution of one tier to a commission."""

    tier: FeeTier
    applicable_millions: Decimal
    fee: Decimal


@dataclass
class WithholdingResult:
    """Gross fee split into withholding and net under one scenario."""

    scenario: WithholdingScenario
    gross_fee: Decimal
    withholding_amount: Decimal
    net_fee: Decimal


@dataclass
class CommissionVerification:
    """Independent re-sum of the tier breakdown against the gross fee."""

    sum_of_tiers: Decimal
    matches_gross: bool


@dataclass
class CommissionResult:
    """Results of a tiered commission calculation (all amounts in USD millions)."""

    deal_millions: Decimal
    gross_fee: Decimal
    effective_rate: Decimal
    tier_breakdown: list[TierBreakdownItem] = field(default_factory=list)
    withholding: list[WithholdingResult] = field(default_factory=list)
    verification: CommissionVerification | None = None


@dataclass
class OpportunityFees:
    """Fees computed for one opportunity of the pipeline."""

    opportunity: Opportunity
    fee_structure: FeeStructure
    commission: CommissionResult
    weighted_gross: Decimal


@dataclass
class PipelineFailure:
    """An opportunity left out of the totals, with the reason."""

    opportunity_id: str
    error: str


@dataclass
class PipelineFeesSummary:
    """Portfolio totals across all included opportunities."""

    total_gross_fees: Decimal = Decimal("0")
    total_weighted_fees: Decimal = Decimal("0")
    by_opportunity: list[OpportunityFees] = field(default_factory=list)
    failures: list[PipelineFailure] = field(default_factory=list)


@dataclass
class ForecastBucket:
    """Gross and weighted fees of one group (country, sector or stage)."""

    key: str
    gross: Decimal = Decimal("0")
    weighted: Decimal = Decimal("0")


@dataclass
class FeesForecast:
    """Pipeline fees grouped by country, sector and stage."""

    total_gross_fees: Decimal
    total_weighted_fees: Decimal
    by_country: list[ForecastBucket] = field(default_factory=list)
    by_sector: list[ForecastBucket] = field(default_factory=list)
    by_stage: list[ForecastBucket] = field(default_factory=list)


@dataclass
class RequiredIntensity:
    """Weekly activity needed to hit the quarter plan."""

    interactions_per_week: int = 0
    meetings_per_week: int = 0
    new_contacts_per_week: int = 0


@dataclass
class PipelinePulse:
    """Pipeline health plus the temperature counts behind it."""

    health: str
    hot_count: int
    cold_alerts: int
    active_count: int


@dataclass
class OpportunityScorecard:
    """Engagement summary for one opportunity."""

    opportunity_id: str
    temperature: str
    intensity_score: int
    total_touchpoints: int
    high_quality_pct: float
    days_since_last_touchpoint: int
    type_distribution: list[tuple[str, int]] = field(default_factory=list)
