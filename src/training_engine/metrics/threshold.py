"""
Threshold velocity estimation from timed field trials.

Fits a straight line through (distance, time) pairs from two or more
maximal time trials:

    time = slope * distance + intercept

The inverse of the slope is the threshold velocity (the critical-velocity
analogue) and -intercept / slope is the capacity reserve D', the distance
that can be covered above threshold velocity before exhaustion.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from ..exceptions import InsufficientDataError, ValidationError


class FitQuality(str, Enum):
    """Quality band of the linear fit."""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"


class EstimateConfidence(str, Enum):
    """Confidence attached to the threshold pace estimate."""
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


MIN_TRIALS = 2
RECOMMENDED_TRIALS = 3

# Longest / shortest trial distance
OPTIMAL_DISTANCE_RATIO_MIN = 2.5
OPTIMAL_DISTANCE_RATIO_MAX = 4.0

MIN_RECOVERY_HOURS = 48.0

# Trial duration band in seconds (roughly 3-15 minutes)
MIN_TRIAL_DURATION_SEC = 180.0
MAX_TRIAL_DURATION_SEC = 900.0

# Lower bounds for each band, checked with a strict ">"
R2_EXCELLENT = 0.95
R2_GOOD = 0.90
R2_FAIR = 0.85

FIT_CONFIDENCE = {
    FitQuality.EXCELLENT: EstimateConfidence.VERY_HIGH,
    FitQuality.GOOD: EstimateConfidence.HIGH,
    FitQuality.FAIR: EstimateConfidence.MEDIUM,
    FitQuality.POOR: EstimateConfidence.MEDIUM,
}

# Training paces relative to threshold pace
INTERVAL_PACE_FACTOR = 0.97   # 3% faster, VO2-type work
THRESHOLD_REPEAT_PACE_FACTOR = 1.03   # 3% slower, threshold repeats

# Capacity reserve (D') magnitude in meters
LOW_CAPACITY_RESERVE_M = 150.0
HIGH_CAPACITY_RESERVE_M = 300.0

RESIDUAL_WARNING_PCT = 5.0


@dataclass
class TimeTrialObservation:
    """A single maximal time trial."""

    distance_m: float
    time_sec: float
    heart_rate: Optional[int] = None
    rpe: Optional[float] = None


@dataclass
class RegressionResult:
    """Ordinary least squares fit of time against distance."""

    slope: float
    intercept: float
    r_squared: float


@dataclass
class ThresholdEstimate:
    """Result of one threshold estimation call."""

    threshold_velocity: float         # m/s
    threshold_pace_sec: float         # seconds per 1000 m
    threshold_pace: str               # "m:ss" per km
    capacity_reserve_m: float         # D'
    r_squared: float
    fit_quality: FitQuality
    confidence: EstimateConfidence
    slope: float
    intercept: float
    trial_count: int
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "threshold_velocity": round(self.threshold_velocity, 3),
            "threshold_pace_sec": round(self.threshold_pace_sec, 1),
            "threshold_pace": self.threshold_pace,
            "capacity_reserve_m": round(self.capacity_reserve_m, 1),
            "r_squared": round(self.r_squared, 4),
            "fit_quality": self.fit_quality.value,
            "confidence": self.confidence.value,
            "trial_count": self.trial_count,
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
        }


def format_pace(seconds: float) -> str:
    """Format a duration in seconds as m:ss."""
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def fit_time_distance(
    distances: Sequence[float],
    times: Sequence[float],
) -> RegressionResult:
    """
    Closed-form least squares fit of time = slope * distance + intercept.

    Raises:
        ValidationError: If every trial has the same distance
    """
    n = len(distances)
    sum_x = sum(distances)
    sum_y = sum(times)
    sum_xy = sum(x * y for x, y in zip(distances, times))
    sum_x2 = sum(x * x for x in distances)

    denominator = n * sum_x2 - sum_x * sum_x
    # Equal float distances can leave a rounding residue in the denominator
    if max(distances) == min(distances) or denominator <= 0:
        raise ValidationError(
            "Trials must cover at least two different distances",
            field="observations",
        )

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    if n == 2:
        # Two points always lie exactly on their line
        return RegressionResult(slope=slope, intercept=intercept, r_squared=1.0)

    mean_y = sum_y / n
    ss_total = sum((y - mean_y) ** 2 for y in times)
    ss_residual = sum(
        (y - (slope * x + intercept)) ** 2 for x, y in zip(distances, times)
    )
    r_squared = 1.0 if ss_total == 0 else 1 - ss_residual / ss_total

    return RegressionResult(slope=slope, intercept=intercept, r_squared=r_squared)


def classify_fit(r_squared: float) -> FitQuality:
    """Band the coefficient of determination."""
    if r_squared > R2_EXCELLENT:
        return FitQuality.EXCELLENT
    elif r_squared > R2_GOOD:
        return FitQuality.GOOD
    elif r_squared > R2_FAIR:
        return FitQuality.FAIR
    return FitQuality.POOR


def _validate_observations(observations: Sequence[TimeTrialObservation]) -> None:
    if len(observations) < MIN_TRIALS:
        raise InsufficientDataError(
            f"Need at least {MIN_TRIALS} time trials, got {len(observations)}",
            required=MIN_TRIALS,
            received=len(observations),
        )
    for i, obs in enumerate(observations):
        if obs.distance_m <= 0:
            raise ValidationError(
                f"Trial {i + 1} distance must be positive", field="distance_m"
            )
        if obs.time_sec <= 0:
            raise ValidationError(
                f"Trial {i + 1} time must be positive", field="time_sec"
            )


def _protocol_warnings(
    trials: Sequence[TimeTrialObservation],
    recovery_hours: Optional[Sequence[float]],
) -> List[str]:
    warnings: List[str] = []

    if len(trials) < RECOMMENDED_TRIALS:
        warnings.append(
            f"Only {len(trials)} trials provided. "
            f"{RECOMMENDED_TRIALS}+ recommended for accuracy."
        )

    distance_ratio = trials[-1].distance_m / trials[0].distance_m
    if not OPTIMAL_DISTANCE_RATIO_MIN <= distance_ratio <= OPTIMAL_DISTANCE_RATIO_MAX:
        warnings.append(
            f"Distance spread ({distance_ratio:.1f}:1) is outside the optimal "
            f"{OPTIMAL_DISTANCE_RATIO_MIN}-{OPTIMAL_DISTANCE_RATIO_MAX}:1 range. "
            "Accuracy may be reduced."
        )

    if recovery_hours:
        short = [h for h in recovery_hours if h < MIN_RECOVERY_HOURS]
        if short:
            warnings.append(
                f"Recovery between trials was under {MIN_RECOVERY_HOURS:.0f} hours "
                f"(shortest {min(short):.0f}h). Fatigue may have slowed later trials."
            )

    for trial in trials:
        if not MIN_TRIAL_DURATION_SEC <= trial.time_sec <= MAX_TRIAL_DURATION_SEC:
            warnings.append(
                f"Trial over {trial.distance_m:.0f}m lasted {format_pace(trial.time_sec)}, "
                "outside the recommended 3-15 minute window."
            )

    return warnings


def _residual_warnings(
    trials: Sequence[TimeTrialObservation],
    fit: RegressionResult,
) -> List[str]:
    warnings = []
    for i, trial in enumerate(trials):
        predicted = fit.slope * trial.distance_m + fit.intercept
        deviation_pct = abs(trial.time_sec - predicted) / trial.time_sec * 100
        if deviation_pct > RESIDUAL_WARNING_PCT:
            warnings.append(
                f"Trial {i + 1} ({trial.distance_m:.0f}m) deviates "
                f"{deviation_pct:.1f}% from the model."
            )
    return warnings


def _build_recommendations(
    r_squared: float,
    pace_sec: float,
    capacity_reserve: float,
) -> List[str]:
    recommendations = []

    if r_squared < R2_GOOD:
        recommendations.append(
            f"Model fit is weak (R² {r_squared:.2f}). Retest with fresh, maximal efforts."
        )

    interval_pace = pace_sec * INTERVAL_PACE_FACTOR
    repeat_pace = pace_sec * THRESHOLD_REPEAT_PACE_FACTOR
    recommendations.append(
        f"VO2 intervals: {format_pace(interval_pace)}/km (3% faster than threshold pace)."
    )
    recommendations.append(
        f"Threshold repeats: {format_pace(repeat_pace)}/km (3% slower than threshold pace)."
    )

    if capacity_reserve < LOW_CAPACITY_RESERVE_M:
        recommendations.append(
            f"Low capacity reserve ({capacity_reserve:.0f}m). "
            "Focus on building aerobic capacity."
        )
    elif capacity_reserve > HIGH_CAPACITY_RESERVE_M:
        recommendations.append(
            f"High capacity reserve ({capacity_reserve:.0f}m). "
            "Longer intervals above threshold pace are well tolerated."
        )

    return recommendations


def estimate_threshold(
    observations: Sequence[TimeTrialObservation],
    recovery_hours_between_trials: Union[float, Sequence[float], None] = None,
) -> ThresholdEstimate:
    """
    Estimate threshold velocity and capacity reserve from time trials.

    Protocol issues (distance spread, short recovery, trial duration) are
    returned as warnings alongside a computed estimate.

    Args:
        observations: Two or more time trials at different distances
        recovery_hours_between_trials: Hours of recovery between consecutive
            trials, either one value for all gaps or one per gap

    Returns:
        ThresholdEstimate with fit quality, warnings and recommendations

    Raises:
        InsufficientDataError: Fewer than two observations
        ValidationError: Non-positive inputs or a non-physical fit
    """
    _validate_observations(observations)

    trials = sorted(observations, key=lambda o: o.distance_m)
    if isinstance(recovery_hours_between_trials, (int, float)):
        recovery_hours: Optional[List[float]] = [float(recovery_hours_between_trials)]
    elif recovery_hours_between_trials is not None:
        recovery_hours = list(recovery_hours_between_trials)
    else:
        recovery_hours = None

    warnings = _protocol_warnings(trials, recovery_hours)

    fit = fit_time_distance(
        [t.distance_m for t in trials],
        [t.time_sec for t in trials],
    )
    if fit.slope <= 0:
        raise ValidationError(
            "Longer trials must take longer; check the trial data",
            field="observations",
            details={"slope": fit.slope},
        )

    velocity = 1 / fit.slope
    pace_sec = 1000 / velocity
    capacity_reserve = -fit.intercept / fit.slope

    if capacity_reserve < 0:
        warnings.append(
            "Negative capacity reserve indicates a poor fit. Check the trial data."
        )
    warnings.extend(_residual_warnings(trials, fit))

    quality = classify_fit(fit.r_squared)

    return ThresholdEstimate(
        threshold_velocity=velocity,
        threshold_pace_sec=pace_sec,
        threshold_pace=format_pace(pace_sec),
        capacity_reserve_m=capacity_reserve,
        r_squared=fit.r_squared,
        fit_quality=quality,
        confidence=FIT_CONFIDENCE[quality],
        slope=fit.slope,
        intercept=fit.intercept,
        trial_count=len(trials),
        warnings=warnings,
        recommendations=_build_recommendations(fit.r_squared, pace_sec, capacity_reserve),
    )


def predict_time_for_distance(estimate: ThresholdEstimate, distance_m: float) -> float:
    """Predicted maximal-effort time in seconds for a distance."""
    if distance_m <= 0:
        raise ValidationError("Distance must be positive", field="distance_m")
    return estimate.slope * distance_m + estimate.intercept


def time_to_exhaustion(estimate: ThresholdEstimate, velocity: float) -> float:
    """
    Seconds a velocity above threshold can be held: D' / (v - CV).

    Returns infinity at or below threshold velocity.
    """
    if velocity <= estimate.threshold_velocity:
        return math.inf
    return estimate.capacity_reserve_m / (velocity - estimate.threshold_velocity)
