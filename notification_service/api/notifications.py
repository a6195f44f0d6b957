from fastapi import APIRouter, HTTPException, status

from notification_service.container import container
from notification_service.schemas.notifications import NotificationRecord

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/{order_id}", response_model=list[NotificationRecord])
async def get_notification_history(order_id: str) -> list[NotificationRecord]:
    history = container.notification_service.get_history(order_id)
    if not history:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No notifications for order {order_id}"
        )
    return history
