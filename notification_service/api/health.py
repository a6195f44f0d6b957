from fastapi import APIRouter

from order_events.schemas import ServiceStatus
from notification_service.container import container
from notification_service.core.config import settings
from notification_service.schemas.notifications import HealthState

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, str | dict[str, str]]:
    consumer_up = container.consumer.is_healthy()
    notifications = await container.notification_service.check_health()

    components = {
        "consumer": ServiceStatus.UP.value if consumer_up else ServiceStatus.DOWN.value,
        **{
            name: ServiceStatus.UP.value if state == HealthState.HEALTHY else ServiceStatus.DOWN.value
            for name, state in notifications.services.items()
        },
    }

    if not consumer_up or notifications.status == HealthState.UNHEALTHY:
        status = ServiceStatus.DOWN
    elif notifications.status == HealthState.DEGRADED:
        status = ServiceStatus.DEGRADED
    else:
        status = ServiceStatus.UP

    return {"service": settings.service_name, "status": status.value, "components": components}


@router.get("/stats")
async def stats() -> dict[str, dict]:
    return {
        "consumer": container.consumer.get_stats(),
        "handler": container.handler.get_stats(),
    }
