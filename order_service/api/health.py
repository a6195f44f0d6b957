from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from order_events.exceptions import PublishError
from order_events.schemas import ServiceStatus
from order_service.core.broker import broker
from order_service.core.config import settings
from order_service.core.database import get_db, ping
from order_service.services.publisher import EventPublisher

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> dict[str, str | dict[str, str]]:
    components: dict[str, str] = {}

    try:
        await ping(db)
        components["database"] = ServiceStatus.UP.value
    except Exception as e:
        components["database"] = f"{ServiceStatus.DOWN.value}: {e}"

    if not broker.is_connected:
        components["kafka"] = f"{ServiceStatus.DOWN.value}: not connected"
    else:
        # A round trip through the topic proves the producer can still write
        database_status = (
            ServiceStatus.UP if components["database"] == ServiceStatus.UP.value else ServiceStatus.DOWN
        )
        try:
            await EventPublisher(broker).publish_health_check(database_status, {"database": components["database"]})
            components["kafka"] = ServiceStatus.UP.value
        except PublishError as e:
            components["kafka"] = f"{ServiceStatus.DOWN.value}: {e}"

    if components["database"] != ServiceStatus.UP.value:
        overall = ServiceStatus.DOWN
    elif components["kafka"] != ServiceStatus.UP.value:
        # Orders can still be stored, but no events go out.
        overall = ServiceStatus.DEGRADED
    else:
        overall = ServiceStatus.UP

    return {"service": settings.service_name, "status": overall.value, "components": components}
