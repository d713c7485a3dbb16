"""Safety gate: attempt cap and cooldown checks that run before any analysis."""

from __future__ import annotations

import math
from datetime import datetime

from chronos.recovery.models import GateDecision, GateVerdict, RecoveryPolicy
from chronos.videos.models import RecoveryMetadata


def check_gate(
    recovery: RecoveryMetadata,
    now: datetime,
    policy: RecoveryPolicy,
    force: bool = False,
) -> GateDecision:
    """Decide whether a video may be acted on in this run.

    Args:
        recovery: The video's recovery bookkeeping.
        now: Current time (aware, UTC).
        policy: Attempt cap and minimum retry interval.
        force: Manual override from an authorized admin caller; bypasses
            both the cap and the cooldown.

    Returns:
        ``attempts_exhausted`` when the cap is reached (the caller must mark
        the video failed), ``cooldown`` when the last attempt is too recent,
        otherwise ``proceed``.
    """
    if force:
        return GateDecision(GateVerdict.PROCEED, "Forced by administrator")

    if recovery.attempts >= policy.max_attempts:
        return GateDecision(
            GateVerdict.ATTEMPTS_EXHAUSTED,
            f"Max recovery attempts ({policy.max_attempts}) reached",
        )

    if recovery.last_attempt_at is not None:
        elapsed = now - recovery.last_attempt_at
        if elapsed < policy.min_retry_interval:
            remaining = policy.min_retry_interval - elapsed
            minutes = math.ceil(remaining.total_seconds() / 60)
            return GateDecision(
                GateVerdict.COOLDOWN,
                f"Rate limited: retry in {minutes} minutes",
                retry_in_minutes=minutes,
            )

    return GateDecision(GateVerdict.PROCEED)
