"""Tests for Settings and the recovery policy built from them."""

from __future__ import annotations

from datetime import timedelta

import pytest

from chronos.config import Settings
from chronos.recovery.models import RecoveryPolicy


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("ENVIRONMENT", "MAX_RECOVERY_ATTEMPTS", "MIN_RETRY_INTERVAL_MINUTES", "INNGEST_BASE_URL"):
            monkeypatch.delenv(var, raising=False)
        cfg = _settings()
        assert cfg.max_recovery_attempts == 3
        assert cfg.min_retry_interval_minutes == 60
        assert cfg.inngest_base_url == "https://inn.gs"
        assert not cfg.is_production

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRON_SECRET", "from-env")
        monkeypatch.setenv("MAX_RECOVERY_ATTEMPTS", "5")
        cfg = _settings()
        assert cfg.cron_secret == "from-env"
        assert cfg.max_recovery_attempts == 5

    @pytest.mark.parametrize("environment", ["production", "PRODUCTION", "Production"])
    def test_is_production(self, environment: str) -> None:
        assert _settings(environment=environment).is_production

    def test_staging_is_not_production(self) -> None:
        assert not _settings(environment="staging").is_production


class TestRecoveryPolicy:
    def test_defaults(self) -> None:
        policy = RecoveryPolicy()
        assert policy.max_attempts == 3
        assert policy.min_retry_interval == timedelta(hours=1)

    def test_from_settings(self) -> None:
        policy = RecoveryPolicy.from_settings(
            _settings(max_recovery_attempts=5, min_retry_interval_minutes=15)
        )
        assert policy.max_attempts == 5
        assert policy.min_retry_interval == timedelta(minutes=15)

    @pytest.mark.parametrize(
        ("stored", "force", "expected"),
        [(0, False, 1), (2, False, 3), (3, False, 3), (5, False, 5), (3, True, 4), (5, True, 6)],
    )
    def test_next_attempt_never_decreases(self, stored: int, force: bool, expected: int) -> None:
        assert RecoveryPolicy().next_attempt(stored, force=force) == expected

    def test_immutable(self) -> None:
        policy = RecoveryPolicy()
        with pytest.raises(AttributeError):
            policy.max_attempts = 10  # type: ignore[misc]
