from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from app.models.order import OrderStatus

class OrderItemSnapshot(BaseModel):
    productId: int
    name: str
    price: Decimal
    quantity: int

class OrderOut(BaseModel):
    id: int
    user_id: int
    items: List[OrderItemSnapshot]
    total_amount: Decimal
    payment_method: str
    status: OrderStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class OrderStatusUpdate(BaseModel):
    status: OrderStatus  # pending, processing, completed, cancelled

class CheckoutRequest(BaseModel):
    payment_method: Optional[str] = Field(None, alias="paymentMethod")

    class Config:
        populate_by_name = True

class CheckoutResponse(BaseModel):
    message: str
    orderId: int
    paymentMethod: str
    totalAmount: str
