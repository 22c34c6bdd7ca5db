"""Tests for threshold velocity estimation."""

import math

import pytest

from training_engine.exceptions import InsufficientDataError, ValidationError
from training_engine.metrics.threshold import (
    EstimateConfidence,
    FitQuality,
    TimeTrialObservation,
    classify_fit,
    estimate_threshold,
    fit_time_distance,
    format_pace,
    predict_time_for_distance,
    time_to_exhaustion,
)


def trials(*pairs):
    return [TimeTrialObservation(distance_m=d, time_sec=t) for d, t in pairs]


@pytest.fixture
def two_trial_estimate():
    return estimate_threshold(trials((1200, 240), (3000, 660)), 72)


class TestFormatPace:
    """Tests for m:ss formatting."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0:00"), (59.4, "0:59"), (60, "1:00"), (233.33, "3:53"), (605, "10:05")],
    )
    def test_format(self, seconds, expected):
        assert format_pace(seconds) == expected


class TestFitTimeDistance:
    """Tests for the least squares fit."""

    def test_two_points_fit_exactly(self):
        fit = fit_time_distance([1200, 3000], [240, 660])

        assert fit.slope == pytest.approx(0.23333, abs=1e-4)
        assert fit.intercept == pytest.approx(-40.0)
        assert fit.r_squared == 1.0

    def test_collinear_points(self):
        fit = fit_time_distance([1000, 2000, 3000], [200, 420, 640])

        assert fit.slope == pytest.approx(0.22)
        assert fit.intercept == pytest.approx(-20.0)
        assert fit.r_squared == pytest.approx(1.0)

    def test_scattered_points_lower_r_squared(self):
        fit = fit_time_distance([1000, 2000, 3000], [200, 460, 640])

        assert 0 < fit.r_squared < 1

    def test_same_distance_rejected(self):
        with pytest.raises(ValidationError):
            fit_time_distance([1600, 1600], [300, 310])

    @pytest.mark.parametrize("distance", [3.3, 1000.1, 1609.34])
    def test_same_float_distance_rejected(self, distance):
        with pytest.raises(ValidationError) as exc_info:
            fit_time_distance([distance] * 3, [240, 250, 260])
        assert "two different distances" in exc_info.value.message


class TestClassifyFit:
    """Tests for R² banding."""

    @pytest.mark.parametrize(
        "r_squared,quality",
        [
            (1.0, FitQuality.EXCELLENT),
            (0.951, FitQuality.EXCELLENT),
            (0.95, FitQuality.GOOD),
            (0.91, FitQuality.GOOD),
            (0.90, FitQuality.FAIR),
            (0.86, FitQuality.FAIR),
            (0.85, FitQuality.POOR),
            (0.2, FitQuality.POOR),
        ],
    )
    def test_bands(self, r_squared, quality):
        assert classify_fit(r_squared) == quality


class TestEstimateThreshold:
    """Tests for the full estimation."""

    def test_two_trial_values(self, two_trial_estimate):
        est = two_trial_estimate

        assert est.slope == pytest.approx(0.2333, abs=1e-4)
        assert est.threshold_velocity == pytest.approx(4.286, abs=1e-3)
        assert est.capacity_reserve_m == pytest.approx(171.4, abs=0.1)
        assert est.r_squared == 1.0
        assert est.fit_quality == FitQuality.EXCELLENT
        assert est.confidence == EstimateConfidence.VERY_HIGH
        assert est.threshold_pace == "3:53"
        assert est.trial_count == 2

    def test_two_trials_warns_about_count(self, two_trial_estimate):
        assert len(two_trial_estimate.warnings) == 1
        assert "3+ recommended" in two_trial_estimate.warnings[0]

    def test_training_pace_recommendations(self, two_trial_estimate):
        recs = two_trial_estimate.recommendations

        assert any("3:46/km" in r for r in recs)
        assert any("4:00/km" in r for r in recs)
        assert not any("Retest" in r for r in recs)

    def test_unsorted_input(self, two_trial_estimate):
        est = estimate_threshold(trials((3000, 660), (1200, 240)), 72)
        assert est.threshold_velocity == pytest.approx(two_trial_estimate.threshold_velocity)

    def test_single_observation_rejected(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            estimate_threshold(trials((1200, 240)))
        assert exc_info.value.details["required"] == 2

    def test_empty_rejected(self):
        with pytest.raises(InsufficientDataError):
            estimate_threshold([])

    def test_same_distance_rejected(self):
        with pytest.raises(ValidationError):
            estimate_threshold(trials((1600, 300), (1600, 320)))

    def test_same_float_distance_rejected_by_estimate(self):
        with pytest.raises(ValidationError) as exc_info:
            estimate_threshold(trials((1000.1, 240), (1000.1, 250), (1000.1, 260)))
        assert "two different distances" in exc_info.value.message

    def test_non_positive_time_rejected(self):
        with pytest.raises(ValidationError):
            estimate_threshold(trials((1200, 0), (3000, 660)))

    def test_longer_trial_faster_rejected(self):
        with pytest.raises(ValidationError):
            estimate_threshold(trials((1200, 300), (3000, 280)))

    def test_narrow_distance_spread_warns(self):
        est = estimate_threshold(trials((2000, 420), (3000, 660)), 72)
        assert any("Distance spread" in w for w in est.warnings)

    def test_short_recovery_warns(self):
        est = estimate_threshold(trials((1200, 240), (3000, 660)), 24)
        assert any("Recovery between trials" in w for w in est.warnings)

    def test_recovery_per_gap(self):
        est = estimate_threshold(
            trials((1200, 240), (2000, 420), (3600, 800)), [72, 36]
        )
        assert any("shortest 36h" in w for w in est.warnings)

    def test_trial_duration_out_of_band_warns(self):
        est = estimate_threshold(trials((600, 120), (1800, 390)), 72)
        assert any("3-15 minute window" in w for w in est.warnings)

    def test_three_trials_with_scatter(self):
        est = estimate_threshold(
            trials((1200, 240), (2400, 560), (3600, 760)), [72, 72]
        )

        assert est.trial_count == 3
        assert est.r_squared < 1.0
        assert not any("recommended for accuracy" in w for w in est.warnings)
        assert any("deviates" in w for w in est.warnings)

    def test_poor_fit_maps_to_medium_confidence(self):
        est = estimate_threshold(
            trials((1000, 200), (1500, 420), (2000, 330), (2500, 560)), 72
        )

        assert est.fit_quality in (FitQuality.FAIR, FitQuality.POOR)
        assert est.confidence == EstimateConfidence.MEDIUM
        assert any("Retest" in r for r in est.recommendations)

    def test_to_dict(self, two_trial_estimate):
        data = two_trial_estimate.to_dict()

        assert data["threshold_pace"] == "3:53"
        assert data["fit_quality"] == "EXCELLENT"
        assert data["r_squared"] == 1.0


class TestPredictions:
    """Tests for predictions derived from an estimate."""

    def test_predict_time_for_distance(self, two_trial_estimate):
        assert predict_time_for_distance(two_trial_estimate, 3000) == pytest.approx(660.0)
        assert predict_time_for_distance(two_trial_estimate, 1200) == pytest.approx(240.0)

    def test_predict_rejects_non_positive_distance(self, two_trial_estimate):
        with pytest.raises(ValidationError):
            predict_time_for_distance(two_trial_estimate, 0)

    def test_time_to_exhaustion_below_threshold(self, two_trial_estimate):
        assert time_to_exhaustion(two_trial_estimate, 4.0) == math.inf
        assert time_to_exhaustion(two_trial_estimate, two_trial_estimate.threshold_velocity) == math.inf

    def test_time_to_exhaustion_above_threshold(self, two_trial_estimate):
        # 1200m in 240s is 5 m/s
        assert time_to_exhaustion(two_trial_estimate, 5.0) == pytest.approx(240.0)
