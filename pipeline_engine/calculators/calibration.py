"""
Calibration Engine

Recomputes intensity benchmarks from historical activity.
"""

from dataclasses import replace
from datetime import datetime, timezone

from ..models import HistoricalActivity, IntensityBenchmarks, IntensityConfig
from .intensity import round_half_up


class CalibrationEngine:
    """Derives new benchmarks once enough deals have closed."""

    MIN_CLOSED_DEALS = 3
    MIN_QUALITY_TARGET = 0.2
    MAX_QUALITY_TARGET = 0.8

    @staticmethod
    def _now_utc() -> datetime:
        return datetime.now(timezone.utc)

    def calibrate(
        self,
        current_config: IntensityConfig,
        history: HistoricalActivity,
        now: datetime | None = None,
    ) -> IntensityConfig | None:
        """
        Return a calibrated copy of the config, or None when fewer than
        three deals have closed. The input config is left untouched.
        """
        if history.closed_deals < self.MIN_CLOSED_DEALS:
            return None

        weeks = max(history.total_weeks, 1)
        quality_target = max(self.MIN_QUALITY_TARGET, min(self.MAX_QUALITY_TARGET, history.high_quality_pct))

        benchmarks = IntensityBenchmarks(
            interactions_per_week=round_half_up(history.total_interactions / weeks),
            meetings_per_week=round_half_up(history.total_meetings / weeks),
            new_contacts_per_week=max(1, round_half_up(history.total_new_contacts / weeks)),
            high_quality_pct_target=quality_target,
            touchpoints_per_active_opp=current_config.benchmarks.touchpoints_per_active_opp,
        )

        return replace(
            current_config,
            thresholds=replace(current_config.thresholds),
            weights=replace(current_config.weights),
            benchmarks=benchmarks,
            auto_calibrate=True,
            last_calibrated_at=(now or self._now_utc()).isoformat(),
        )
