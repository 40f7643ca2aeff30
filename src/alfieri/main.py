"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI

from alfieri.api.routes import health, message, refetch, webhook
from alfieri.config import settings
from alfieri.tasks.refetch_job import run_refetch

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The refetch is normally triggered by an external scheduler through
    # POST /refetch; the in-process cron is for single-instance deployments.
    scheduler: AsyncIOScheduler | None = None
    if settings.refetch_cron:
        scheduler = AsyncIOScheduler(timezone=settings.newsletter_timezone)
        scheduler.add_job(
            run_refetch,
            trigger=CronTrigger.from_crontab(settings.refetch_cron, timezone=settings.newsletter_timezone),
            id="newsletter_refetch",
            name="Refetch of the live newsletter page",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(f"Scheduler started — newsletter refetch registered for '{settings.refetch_cron}'")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")


app = FastAPI(
    title="Spazio Alfieri Bot",
    description="Publishes new showtimes from the Spazio Alfieri newsletter",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(webhook.router, tags=["webhook"])
app.include_router(refetch.router, tags=["refetch"])
app.include_router(message.router, tags=["message"])
