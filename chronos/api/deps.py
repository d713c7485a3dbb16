"""Bearer-token guards for the cron and admin endpoints."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chronos.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)]


def _token_matches(credentials: HTTPAuthorizationCredentials | None, expected: str) -> bool:
    if credentials is None:
        return False
    return secrets.compare_digest(credentials.credentials.encode(), expected.encode())


async def require_cron_secret(credentials: BearerCredentials) -> None:
    """Authorize the scheduled trigger.

    In production CRON_SECRET must be configured (500 otherwise). Outside
    production an unset secret disables the check so the job can be run
    locally.
    """
    if not settings.cron_secret:
        if settings.is_production:
            logger.error("CRON_SECRET not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Server misconfiguration",
            )
        logger.warning("CRON_SECRET not configured; cron endpoint is unauthenticated")
        return

    if not _token_matches(credentials, settings.cron_secret):
        logger.warning("Unauthorized cron access attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def require_admin_key(credentials: BearerCredentials) -> None:
    """Authorize admin endpoints with ADMIN_API_KEY (500 if it is not configured)."""
    if not settings.admin_api_key:
        logger.error("ADMIN_API_KEY not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration",
        )

    if not _token_matches(credentials, settings.admin_api_key):
        logger.warning("Unauthorized admin access attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
