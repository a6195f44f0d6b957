from contextlib import asynccontextmanager
from fastapi import FastAPI

from order_events.log import setup_logging
from order_service.core.config import settings
from order_service.core.broker import broker
from order_service.core.database import create_schema, engine
from order_service.api.errors import register_error_handlers
from order_service.api.orders import router as orders_router
from order_service.api.health import router as health_router
from order_service.models import order  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.service_name, settings.log_level)

    await create_schema()

    await broker.connect()

    yield

    await broker.close()
    await engine.dispose()


app = FastAPI(
    title="Order Service",
    description="Order intake microservice publishing ORDER_CREATED events",
    version="0.1.0",
    lifespan=lifespan
)

register_error_handlers(app)

app.include_router(health_router)
app.include_router(orders_router)
