"""Order Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class OrderCreate(BaseModel):
    """Schema for creating or replacing an order."""

    order_no: str = Field(..., max_length=50)
    customer_name: str = Field(..., max_length=100)
    order_date: datetime
    quantity: int = Field(..., gt=0)
    status: str = Field(default="New", max_length=50)
    description: str | None = Field(default=None, max_length=500)


class OrderResponse(BaseModel):
    """Schema for order responses."""

    id: uuid.UUID
    order_no: str
    customer_name: str
    order_date: datetime
    quantity: int
    status: str
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
