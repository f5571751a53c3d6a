from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.deps import get_current_user, get_db, require_admin
from app.schemas.order import OrderOut, OrderStatusUpdate
from app.crud import order as crud_order
from app.models.models import User
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/mine", response_model=List[OrderOut])
def list_my_orders(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_order.get_orders_by_user(db, user.id)

@router.get("/{order_id}", response_model=OrderOut)
def get_my_order(
    order_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_order.get_user_order(db, user.id, order_id)

# Status is a stored label only; changing it has no effect on stock
@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    status_data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    order = crud_order.update_order_status(db, order_id, status_data.status)
    logger.info(f"Admin {admin.id} set order {order_id} to {order.status.value}")
    return order
