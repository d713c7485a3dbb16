import asyncio
import time
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chronos.api.models import QueueHealthResponse
from chronos.api.routes.admin import router as admin_router
from chronos.api.routes.cron import router as cron_router
from chronos.config import configure_logging, settings
from chronos.events import HEALTH_CHECK_EVENT, EventPublishError, InngestClient, get_event_client

# Above this the queue is reported as degraded
QUEUE_DEGRADED_AFTER_MS = 5000

configure_logging(settings.log_level)

app = FastAPI(
    title="Chronos Recovery API",
    description="Auto-recovery for videos stuck in the processing pipeline",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cron_router)
app.include_router(admin_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@app.get("/health/inngest", response_model=QueueHealthResponse)
async def inngest_health() -> QueueHealthResponse | JSONResponse:
    """Send a test event to Inngest and report how the queue responded."""
    with get_event_client() as publisher:
        return await _probe_queue(publisher)


async def _probe_queue(publisher: InngestClient) -> QueueHealthResponse | JSONResponse:
    timestamp = datetime.now(UTC).isoformat()

    if not publisher.configured:
        body = QueueHealthResponse(
            healthy=False,
            status="unhealthy",
            message="Inngest client is not configured",
            timestamp=timestamp,
            client_configured=False,
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    started = time.monotonic()
    try:
        await asyncio.to_thread(
            publisher.send,
            HEALTH_CHECK_EVENT,
            {"timestamp": timestamp, "source": "health-check-endpoint"},
        )
    except EventPublishError as exc:
        body = QueueHealthResponse(
            healthy=False,
            status="unhealthy",
            message="Failed to send test event to Inngest",
            timestamp=timestamp,
            response_time_ms=int((time.monotonic() - started) * 1000),
            client_configured=True,
            error=str(exc),
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    elapsed_ms = int((time.monotonic() - started) * 1000)
    degraded = elapsed_ms > QUEUE_DEGRADED_AFTER_MS
    return QueueHealthResponse(
        healthy=True,
        status="degraded" if degraded else "healthy",
        message=(
            "Inngest is available but responding slowly"
            if degraded
            else "Inngest is available"
        ),
        timestamp=timestamp,
        response_time_ms=elapsed_ms,
        client_configured=True,
    )


def run() -> None:
    """Serve the API with uvicorn on API_HOST:API_PORT."""
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
