from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.core.exceptions import InvalidQuantity
from app.crud import cart as crud_cart
from app.db.deps import get_current_user, get_db
from app.models.models import User
from app.schemas.order import CheckoutRequest, CheckoutResponse
from app.schemas.schemas import CartItemCreate, CartItemUpdate, CartOut, MessageResponse
from app.services import checkout_service

router = APIRouter()


@router.get("/cart", response_model=CartOut)
def get_cart(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return crud_cart.get_cart(db, user.id)


@router.post("/cart", response_model=MessageResponse)
def add_item(data: CartItemCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    # An explicit null is not the same as leaving the quantity out
    if data.quantity is None and "quantity" in data.model_fields_set:
        raise InvalidQuantity()
    crud_cart.add_to_cart(db, user.id, data.product_id, data.quantity)
    return {"message": "Item added to cart successfully"}


@router.put("/cart/{cart_id}", response_model=MessageResponse)
def update_item(
    cart_id: int,
    data: CartItemUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    crud_cart.update_cart_item(db, user.id, cart_id, data.quantity)
    return {"message": "Cart item updated successfully"}


@router.delete("/cart/{cart_id}", response_model=MessageResponse)
def remove_item(cart_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    crud_cart.remove_cart_item(db, user.id, cart_id)
    return {"message": "Item removed from cart successfully"}


@router.delete("/cart", response_model=MessageResponse)
def clear_cart(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    crud_cart.clear_cart(db, user.id)
    return {"message": "Cart cleared successfully"}


# Checkout: enforce Cash on Delivery and record order
@router.post("/checkout", response_model=CheckoutResponse)
def checkout(
    data: Optional[CheckoutRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = checkout_service.checkout(db, user.id, data.payment_method if data else None)
    return {
        "message": "Order placed successfully. Payment method: Cash on Delivery.",
        "orderId": result.order_id,
        "paymentMethod": result.payment_method,
        "totalAmount": crud_cart.format_amount(result.total_amount),
    }
