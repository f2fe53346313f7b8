import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from amctrack.base.clock import REMINDER_TIMEZONE
from amctrack.customer.router import router as customer_router
from amctrack.equipment.router import router as equipment_router
from amctrack.events.router import router as events_router
from amctrack.maintenance.router import router as maintenance_router
from amctrack.scheduler import run_amc_reminder_scan

logging.basicConfig(level=logging.INFO)

REMINDER_HOUR = int(os.environ.get("AMCTRACK_REMINDER_HOUR", "0"))
REMINDER_MINUTE = int(os.environ.get("AMCTRACK_REMINDER_MINUTE", "0"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    scheduler = AsyncIOScheduler(timezone=REMINDER_TIMEZONE)
    scheduler.add_job(
        run_amc_reminder_scan,
        "cron",
        hour=REMINDER_HOUR,
        minute=REMINDER_MINUTE,
        id="run_amc_reminder_scan",
    )
    scheduler.start()
    yield
    scheduler.shutdown()


app = FastAPI(title="amctrack", lifespan=lifespan)
app.include_router(customer_router)
app.include_router(equipment_router)
app.include_router(maintenance_router)
app.include_router(events_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
