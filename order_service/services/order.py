import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from order_events.exceptions import OrderValidationError, PublishError
from order_events.schemas import OrderStatus
from order_service.models.order import Order
from order_service.repositories.order import OrderRepository
from order_service.schemas.order import OrderCreate, OrderItem, StoredOrder
from order_service.services.publisher import EventPublisher

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, repository: OrderRepository, publisher: EventPublisher) -> None:
        self.repository = repository
        self.publisher = publisher

    async def create_order(self, raw_input: Mapping[str, Any] | OrderCreate) -> StoredOrder:
        order_data = self.validate_order_data(raw_input)
        total_amount = self.calculate_total(order_data.items)

        order = Order(
            user_id=order_data.user_id,
            items=[item.model_dump(mode="json") for item in order_data.items],
            total_amount=total_amount,
            customer_email=order_data.customer_email,
            customer_name=order_data.customer_name,
            customer_phone=order_data.customer_phone,
            status=OrderStatus.PENDING.value,
        )

        saved_order = await self.repository.save(order)
        stored_order = self._to_stored_order(saved_order)
        logger.info(f"Order saved: {stored_order.order_id}, total: {stored_order.total_amount}")

        # Persist and publish are two separate steps. A failed publish leaves a
        # stored order without an ORDER_CREATED event; it is reported, not retried.
        try:
            receipt = await self.publisher.publish_order_created(stored_order)
        except PublishError:
            logger.error(
                f"Order {stored_order.order_id} was persisted but its ORDER_CREATED event was not published"
            )
            raise

        logger.info(f"Order created event published: {stored_order.order_id} (event {receipt.event_id})")
        return stored_order

    async def get_order(self, order_id: str) -> Optional[StoredOrder]:
        order = await self.repository.find_by_id(order_id)
        if not order:
            return None
        return self._to_stored_order(order)

    @staticmethod
    def validate_order_data(raw_input: Mapping[str, Any] | OrderCreate) -> OrderCreate:
        if isinstance(raw_input, OrderCreate):
            return raw_input

        try:
            return OrderCreate.model_validate(raw_input)
        except ValidationError as e:
            errors = [
                {
                    "field": ".".join(str(part) for part in error["loc"]) or "body",
                    "message": error["msg"],
                }
                for error in e.errors()
            ]
            logger.warning(f"Order validation failed with {len(errors)} error(s)")
            raise OrderValidationError("Order validation failed", errors=errors) from e

    @staticmethod
    def calculate_total(items: Iterable[OrderItem]) -> float:
        return sum(item.quantity * item.price for item in items)

    @staticmethod
    def _to_stored_order(order: Order) -> StoredOrder:
        return StoredOrder(
            order_id=order.id,
            user_id=order.user_id,
            items=[OrderItem(**item) for item in order.items],
            total_amount=order.total_amount,
            status=order.status,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
