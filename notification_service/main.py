import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from order_events.log import setup_logging
from notification_service.core.config import settings
from notification_service.container import container
from notification_service.api.health import router as health_router
from notification_service.api.notifications import router as notifications_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.service_name, settings.log_level)

    await container.consumer.start()
    logger.info("Notification service started")

    yield

    await container.consumer.stop()
    logger.info("Notification service stopped")


app = FastAPI(
    title="Notification Service",
    description="Consumes order events and sends customer notifications",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(health_router)
app.include_router(notifications_router)
