"""Tests for configuration and the exception hierarchy."""

from __future__ import annotations

from pathlib import Path

import pytest
from dynaconf import Dynaconf

from portal_estimator.config import AISettings, EstimationSettings, Settings, get_settings
from portal_estimator.core.exceptions import (
    DataStoreError,
    EstimatePersistenceError,
    EstimatorError,
    InvalidScheduleError,
    TextEstimatorError,
    TicketNotFoundError,
    ValidationError,
)


class TestSettings:
    """Tests for Settings defaults and overrides."""

    def test_estimation_defaults(self):
        settings = EstimationSettings()

        assert settings.default_rate_cents == 15000
        assert settings.max_lookahead_days == 45
        assert settings.availability_window_days == 14
        assert settings.next_slot_search_days == 30
        assert settings.history_min_samples == 5
        assert settings.default_estimated_hours == 2.0
        assert settings.default_queue_position == 1

    def test_ai_disabled_by_default(self):
        assert AISettings().provider == "none"

    def test_nested_environment_override(self, monkeypatch):
        monkeypatch.setenv("ESTIMATOR_ESTIMATION__DEFAULT_RATE_CENTS", "9900")
        monkeypatch.setenv("ESTIMATOR_AI__TIMEOUT_SECONDS", "2.5")

        settings = Settings()

        assert settings.estimation.default_rate_cents == 9900
        assert settings.ai.timeout_seconds == 2.5

    def test_get_settings_test_environment(self):
        settings = get_settings()

        assert settings.environment == "test"
        assert settings.database.url == "sqlite+aiosqlite:///:memory:"
        assert settings.ai.provider == "none"
        assert get_settings() is settings

    def test_mock_settings_fixture(self, mock_settings):
        from portal_estimator import config

        assert config.get_settings() is mock_settings
        assert mock_settings.environment == "test"


CONFIG_DIR = Path(__file__).parent.parent / "configs"


class TestConfigProfiles:
    """Tests for the YAML profiles under configs/."""

    @pytest.mark.parametrize(
        "profile,database_url",
        [
            ("default.yaml", "sqlite+aiosqlite:///data/estimator.db"),
            ("test.yaml", "sqlite+aiosqlite:///:memory:"),
        ],
    )
    def test_profile_loads(self, profile, database_url):
        loaded = Dynaconf(settings_files=[str(CONFIG_DIR / profile)])

        assert loaded.as_dict()["DATABASE"]["url"] == database_url

    def test_test_profile_builds_settings(self):
        loaded = Dynaconf(settings_files=[str(CONFIG_DIR / "test.yaml")])

        settings = Settings(**{key.lower(): value for key, value in loaded.as_dict().items()})

        assert settings.database.url == "sqlite+aiosqlite:///:memory:"
        assert settings.ai.timeout_seconds == 1.0
        assert settings.log_level == "WARNING"


class TestExceptions:
    """Tests for the estimator error hierarchy."""

    @pytest.mark.parametrize(
        "exc_class,status_code,error_code",
        [
            (EstimatorError, 500, "ESTIMATOR_ERROR"),
            (DataStoreError, 503, "DATA_STORE_ERROR"),
            (EstimatePersistenceError, 503, "ESTIMATE_PERSISTENCE_ERROR"),
            (TicketNotFoundError, 404, "TICKET_NOT_FOUND"),
            (ValidationError, 400, "VALIDATION_ERROR"),
            (InvalidScheduleError, 400, "INVALID_SCHEDULE"),
            (TextEstimatorError, 502, "TEXT_ESTIMATOR_ERROR"),
        ],
    )
    def test_status_codes(self, exc_class, status_code, error_code):
        exc = exc_class("failed")

        assert exc.status_code == status_code
        assert exc.error_code == error_code
        assert isinstance(exc, EstimatorError)

    def test_to_dict(self):
        cause = OSError("disk full")
        exc = EstimatePersistenceError("Could not save", details={"ticket_id": "T-1"}, cause=cause)

        assert exc.to_dict() == {
            "error": "ESTIMATE_PERSISTENCE_ERROR",
            "message": "Could not save",
            "details": {"ticket_id": "T-1"},
            "cause": "disk full",
        }

    def test_str(self):
        exc = TicketNotFoundError("Ticket T-9 not found", details={"ticket_id": "T-9"})

        assert str(exc) == "TICKET_NOT_FOUND: Ticket T-9 not found | details={'ticket_id': 'T-9'}"

    def test_persistence_is_data_store_error(self):
        assert issubclass(EstimatePersistenceError, DataStoreError)
