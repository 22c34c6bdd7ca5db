"""Tests for training load calculations."""

import pytest
from datetime import date

from training_engine.exceptions import ValidationError
from training_engine.metrics.load import (
    ACUTE_ALPHA,
    CHRONIC_ALPHA,
    DEFAULT_INTENSITY_MULTIPLIER,
    INTENSITY_MULTIPLIERS,
    ZONE_GUIDANCE,
    InjuryRisk,
    LoadZone,
    SessionIntensity,
    TrainingSession,
    calculate_ewma,
    calculate_ratio,
    calculate_session_load,
    classify_ratio,
    compute_load_sample,
    describe_zone,
    get_intensity_multiplier,
)


DAY = date(2026, 3, 10)


class TestIntensityMultipliers:
    """Tests for the intensity multiplier table."""

    def test_table_values(self):
        assert INTENSITY_MULTIPLIERS == {
            SessionIntensity.RECOVERY: 0.5,
            SessionIntensity.EASY: 0.6,
            SessionIntensity.MODERATE: 0.75,
            SessionIntensity.THRESHOLD: 1.0,
            SessionIntensity.INTERVAL: 1.2,
            SessionIntensity.MAX: 1.5,
        }

    def test_lookup_is_case_insensitive(self):
        assert get_intensity_multiplier("interval") == 1.2
        assert get_intensity_multiplier("Threshold") == 1.0

    def test_unknown_intensity_defaults(self):
        assert get_intensity_multiplier("TEMPO") == DEFAULT_INTENSITY_MULTIPLIER
        assert get_intensity_multiplier(None) == 0.7
        assert get_intensity_multiplier("") == 0.7


class TestSessionLoad:
    """Tests for daily load from a session."""

    def test_no_session_is_zero(self):
        assert calculate_session_load(None) == 0.0

    def test_duration_times_multiplier(self):
        session = TrainingSession("a1", DAY, duration_min=60, intensity="INTERVAL")
        assert calculate_session_load(session) == pytest.approx(72.0)

    def test_missing_intensity(self):
        session = TrainingSession("a1", DAY, duration_min=50)
        assert calculate_session_load(session) == pytest.approx(35.0)

    def test_negative_duration_rejected(self):
        session = TrainingSession("a1", DAY, duration_min=-60, intensity="EASY")
        with pytest.raises(ValidationError):
            calculate_session_load(session)

    def test_zero_duration_is_zero_load(self):
        session = TrainingSession("a1", DAY, duration_min=0, intensity="MAX")
        assert calculate_session_load(session) == 0.0


class TestEWMA:
    """Tests for the smoothing step."""

    @pytest.mark.parametrize("value,alpha", [(0.0, 0.4), (57.5, 0.1), (120.0, 0.9)])
    def test_no_previous_returns_value(self, value, alpha):
        assert calculate_ewma(None, value, alpha) == value

    def test_blend(self):
        assert calculate_ewma(50.0, 0.0, ACUTE_ALPHA) == pytest.approx(30.0)
        assert calculate_ewma(40.0, 0.0, CHRONIC_ALPHA) == pytest.approx(36.0)

    def test_constants_are_kept(self):
        assert ACUTE_ALPHA == 0.4
        assert CHRONIC_ALPHA == 0.1


class TestRatioAndZones:
    """Tests for ratio calculation and zone mapping."""

    def test_zero_chronic_gives_zero_ratio(self):
        assert calculate_ratio(25.0, 0.0) == 0.0

    def test_ratio(self):
        assert calculate_ratio(30.0, 36.0) == pytest.approx(0.8333, abs=1e-4)

    @pytest.mark.parametrize(
        "ratio,zone,risk",
        [
            (0.0, LoadZone.DETRAINING, InjuryRisk.LOW),
            (0.79, LoadZone.DETRAINING, InjuryRisk.LOW),
            (0.8, LoadZone.OPTIMAL, InjuryRisk.LOW),
            (1.3, LoadZone.OPTIMAL, InjuryRisk.LOW),
            (1.31, LoadZone.CAUTION, InjuryRisk.MODERATE),
            (1.5, LoadZone.CAUTION, InjuryRisk.MODERATE),
            (1.51, LoadZone.DANGER, InjuryRisk.HIGH),
            (2.0, LoadZone.DANGER, InjuryRisk.HIGH),
            (2.01, LoadZone.CRITICAL, InjuryRisk.VERY_HIGH),
        ],
    )
    def test_zone_boundaries(self, ratio, zone, risk):
        assert classify_ratio(ratio) == (zone, risk)

    def test_every_zone_has_guidance(self):
        for zone in LoadZone:
            guidance = describe_zone(zone)
            assert guidance["label"]
            assert guidance["action"]
        assert set(ZONE_GUIDANCE) == set(LoadZone)


class TestComputeLoadSample:
    """Tests for advancing the smoothed state by one day."""

    def test_first_sample_uses_daily_load(self):
        session = TrainingSession("a1", DAY, duration_min=60, intensity="THRESHOLD")
        sample = compute_load_sample("a1", DAY, session, None)

        assert sample.acute_load == 60.0
        assert sample.chronic_load == 60.0
        assert sample.ratio == pytest.approx(1.0)
        assert sample.zone == LoadZone.OPTIMAL

    def test_first_sample_without_session(self):
        sample = compute_load_sample("a1", DAY, None, None)

        assert sample.daily_load == 0.0
        assert sample.ratio == 0.0
        assert sample.zone == LoadZone.DETRAINING

    def test_rest_day_scenario(self, sample_factory):
        previous = sample_factory("a1", date(2026, 3, 9), acute=50.0, chronic=40.0)
        sample = compute_load_sample("a1", DAY, None, previous)

        assert sample.acute_load == pytest.approx(30.0)
        assert sample.chronic_load == pytest.approx(36.0)
        assert sample.ratio == pytest.approx(0.833, abs=1e-3)
        assert sample.zone == LoadZone.OPTIMAL
        assert sample.injury_risk == InjuryRisk.LOW

    def test_long_gap_converges_to_zero(self, sample_factory):
        previous = sample_factory("a1", date(2026, 1, 1), acute=80.0, chronic=60.0)
        for _ in range(400):
            previous = compute_load_sample("a1", DAY, None, previous)

        assert previous.acute_load == pytest.approx(0.0, abs=1e-9)
        assert previous.chronic_load == pytest.approx(0.0, abs=1e-9)
        assert previous.acute_load >= 0
        assert previous.chronic_load >= 0

    def test_all_zero_history_reports_zero_ratio(self):
        previous = None
        for _ in range(35):
            previous = compute_load_sample("a1", DAY, None, previous)

        assert previous.acute_load == 0.0
        assert previous.chronic_load == 0.0
        assert previous.ratio == 0.0

    def test_spike_enters_danger(self, sample_factory):
        previous = sample_factory("a1", date(2026, 3, 9), acute=40.0, chronic=40.0)
        session = TrainingSession("a1", date(2026, 3, 9), duration_min=90, intensity="MAX")
        sample = compute_load_sample("a1", DAY, session, previous)

        # acute = 0.4*135 + 0.6*40 = 78, chronic = 0.1*135 + 0.9*40 = 49.5
        assert sample.ratio == pytest.approx(78 / 49.5)
        assert sample.zone == LoadZone.DANGER

    def test_to_dict(self):
        sample = compute_load_sample("a1", DAY, None, None)
        data = sample.to_dict()

        assert data["date"] == "2026-03-10"
        assert data["zone"] == "DETRAINING"
        assert data["injury_risk"] == "LOW"
