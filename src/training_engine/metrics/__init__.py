"""Training metrics calculations."""

from .load import (
    INTENSITY_MULTIPLIERS,
    ZONE_TABLE,
    InjuryRisk,
    LoadZone,
    SessionIntensity,
    TrainingLoadSample,
    TrainingSession,
    calculate_ewma,
    calculate_ratio,
    calculate_session_load,
    classify_ratio,
    compute_load_sample,
    describe_zone,
)
from .threshold import (
    EstimateConfidence,
    FitQuality,
    ThresholdEstimate,
    TimeTrialObservation,
    estimate_threshold,
    format_pace,
    predict_time_for_distance,
    time_to_exhaustion,
)

__all__ = [
    # Load monitoring
    "INTENSITY_MULTIPLIERS",
    "ZONE_TABLE",
    "InjuryRisk",
    "LoadZone",
    "SessionIntensity",
    "TrainingLoadSample",
    "TrainingSession",
    "calculate_ewma",
    "calculate_ratio",
    "calculate_session_load",
    "classify_ratio",
    "compute_load_sample",
    "describe_zone",
    # Threshold estimation
    "EstimateConfidence",
    "FitQuality",
    "ThresholdEstimate",
    "TimeTrialObservation",
    "estimate_threshold",
    "format_pace",
    "predict_time_for_distance",
    "time_to_exhaustion",
]
