from decimal import Decimal
from typing import List
from sqlalchemy.orm import Session
from app.core.exceptions import NotFoundError
from app.models.order import Order, OrderStatus

def create_order(db: Session, user_id: int, items: List[dict], total_amount: Decimal, payment_method: str) -> Order:
    """Stage an order row and flush it to get its id. Does not commit."""
    order = Order(
        user_id=user_id,
        items=items,
        total_amount=total_amount,
        payment_method=payment_method,
        status=OrderStatus.pending,
    )
    db.add(order)
    db.flush()
    return order

def get_orders_by_user(db: Session, user_id: int) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )

def get_user_order(db: Session, user_id: int, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order

def update_order_status(db: Session, order_id: int, new_status: OrderStatus) -> Order:
    order = db.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    order.status = new_status
    db.commit()
    db.refresh(order)
    return order
