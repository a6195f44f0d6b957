import logging
import uuid
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from order_events.exceptions import RepositoryError
from order_service.models.order import Order

logger = logging.getLogger(__name__)


class OrderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(self, order: Order) -> Order:
        if not order.id:
            order.id = str(uuid.uuid4())

        try:
            self.session.add(order)
            await self.session.commit()
            await self.session.refresh(order)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to save order for user {order.user_id}: {e}", exc_info=True)
            raise RepositoryError(f"Failed to save order: {e}") from e
        return order

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        try:
            result = await self.session.execute(
                select(Order).where(Order.id == order_id)
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to load order {order_id}: {e}") from e
        return result.scalar_one_or_none()
