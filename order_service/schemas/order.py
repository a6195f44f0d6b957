from datetime import datetime
from typing import Any, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from order_events.schemas import EMAIL_PATTERN, OrderStatus


class CamelSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class OrderItem(CamelSchema):
    id: int | str
    title: str = Field(min_length=1, max_length=200)
    quantity: int = Field(ge=1)
    price: float = Field(gt=0)


class OrderCreate(CamelSchema):
    user_id: str = Field(min_length=1, max_length=100)
    items: List[OrderItem] = Field(min_length=1)
    customer_email: str = Field(pattern=EMAIL_PATTERN)
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str | None = Field(default=None, max_length=32)


class StoredOrder(CamelSchema):
    order_id: str
    user_id: str
    items: List[OrderItem]
    total_amount: float
    status: OrderStatus
    customer_email: str
    customer_name: str
    customer_phone: str | None = None
    created_at: datetime
    updated_at: datetime

    def to_event_data(self) -> dict[str, Any]:
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"updated_at"},
        )


class OrderResponse(CamelSchema):
    order_id: str
    status: OrderStatus
    total_amount: float
    items: List[OrderItem]
    created_at: datetime
