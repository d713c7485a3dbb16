"""Live checks against a real Supabase project and Inngest.

# MANUAL RUN REQUIRED: needs SUPABASE_URL, SUPABASE_KEY and INNGEST_EVENT_KEY in .env.
# Run with: pytest -m expensive tests/test_live_recovery.py -v
#
# Both tests are read-only with respect to videos: the recovery run is a dry
# run, and the only event sent is the health-check event.
"""

from __future__ import annotations

import pytest

from chronos.config import settings
from chronos.events import HEALTH_CHECK_EVENT, get_event_client
from chronos.recovery.models import OutcomeStatus, RecoveryOptions, RecoveryPolicy
from chronos.recovery.runner import run_recovery
from chronos.videos.storage import get_supabase_client


@pytest.mark.expensive
def test_dry_run_against_live_database() -> None:
    if not (settings.supabase_url and settings.supabase_key):
        pytest.skip("SUPABASE_URL / SUPABASE_KEY not configured")

    with get_event_client() as publisher:
        report = run_recovery(
            get_supabase_client(),
            publisher,
            RecoveryOptions(dry_run=True),
            RecoveryPolicy.from_settings(settings),
        )

    assert report.total == report.recovered + report.failed + report.skipped
    for result in report.results:
        if result.status is not OutcomeStatus.SKIPPED:
            assert result.reason.startswith("Would trigger")


@pytest.mark.expensive
def test_inngest_accepts_health_check_event() -> None:
    with get_event_client() as publisher:
        if not publisher.configured:
            pytest.skip("INNGEST_EVENT_KEY not configured")
        ids = publisher.send(HEALTH_CHECK_EVENT, {"source": "pytest"})
    assert ids
