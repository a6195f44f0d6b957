from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from order_service.core.broker import broker
from order_service.core.database import get_db
from order_service.repositories.order import OrderRepository
from order_service.schemas.order import OrderResponse, StoredOrder
from order_service.services.order import OrderService
from order_service.services.publisher import EventPublisher

router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    repository = OrderRepository(db)
    publisher = EventPublisher(broker)
    return OrderService(repository, publisher)


def _to_response(order: StoredOrder) -> OrderResponse:
    return OrderResponse(
        order_id=order.order_id,
        status=order.status,
        total_amount=order.total_amount,
        items=order.items,
        created_at=order.created_at
    )


@router.post("", response_model=OrderResponse, response_model_by_alias=True, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: Any = Body(...),
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    order = await service.create_order(order_data)
    return _to_response(order)


@router.get("/{order_id}", response_model=StoredOrder, response_model_by_alias=True)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service)
) -> StoredOrder:
    order = await service.get_order(order_id)
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found"
        )
    return order
