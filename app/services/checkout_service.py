# app/services/checkout_service.py - Cart to order transition
#
# Validation happens before anything is written. The write sequence (order
# insert, stock decrements, cart removal) runs inside one UnitOfWork: either
# all of it commits or none of it does.

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, EmptyCart, InsufficientStock, InvalidPaymentMethod
from app.core.monitoring import monitoring
from app.crud import cart as crud_cart
from app.crud import order as crud_order
from app.crud import product as crud_product
from app.db.unit_of_work import UnitOfWork
from app.models.models import CartItem
from app.models.order import PaymentMethod
from app.models.product import Product

logger = logging.getLogger(__name__)

ALLOWED_PAYMENT_METHOD = PaymentMethod.cash_on_delivery.value


@dataclass
class CheckoutResult:
    order_id: int
    total_amount: Decimal
    payment_method: str


def build_order_items(entries: Iterable[Tuple[CartItem, Product]]) -> List[dict]:
    """Snapshot of what is being bought, detached from the product rows."""
    return [
        {
            "productId": product.id,
            "name": product.name,
            "price": str(Decimal(product.price).quantize(crud_cart.CENT)),
            "quantity": item.quantity,
        }
        for item, product in entries
    ]


def compute_total(entries: Iterable[Tuple[CartItem, Product]]) -> Decimal:
    """Sum of unit price x quantity, rounded once (half up) to cents."""
    total = sum(
        (Decimal(product.price) * item.quantity for item, product in entries),
        Decimal("0"),
    )
    return total.quantize(crud_cart.CENT, rounding=ROUND_HALF_UP)


def _validate_payment_method(payment_method) -> str:
    if payment_method != ALLOWED_PAYMENT_METHOD:
        raise InvalidPaymentMethod(ALLOWED_PAYMENT_METHOD)
    return payment_method


def _validate_stock(entries: Iterable[Tuple[CartItem, Product]]) -> None:
    # Point-in-time check so obvious failures write nothing; the conditional
    # decrement below is what actually guards the stock.
    for item, product in entries:
        if product.stock_quantity < item.quantity:
            raise InsufficientStock(product.id)


def checkout(db: Session, user_id: int, payment_method) -> CheckoutResult:
    """Turn the user's cart into a pending cash-on-delivery order.

    Raises InvalidPaymentMethod, EmptyCart, InsufficientStock or ConflictError;
    in every failure case nothing is persisted.
    """
    try:
        method = _validate_payment_method(payment_method)

        entries = crud_cart.get_cart_entries(db, user_id)
        if not entries:
            raise EmptyCart()

        _validate_stock(entries)

        items = build_order_items(entries)
        total = compute_total(entries)

        with UnitOfWork(db):
            order = crud_order.create_order(db, user_id, items, total, method)

            for item, product in entries:
                if not crud_product.decrement_stock(db, product.id, item.quantity):
                    raise InsufficientStock(product.id)

            removed = crud_cart.delete_checked_out_entries(db, user_id, [item for item, _ in entries])
            if removed != len(entries):
                raise ConflictError("Cart changed during checkout, please review it and try again")

            order_id = order.id
    except (InvalidPaymentMethod, EmptyCart) as e:
        monitoring.record_checkout_rejected(e.message, user_id)
        raise
    except ConflictError as e:
        monitoring.record_checkout_rejected(e.message, user_id, stock_conflict=isinstance(e, InsufficientStock))
        raise

    monitoring.record_order(order_id, user_id)
    return CheckoutResult(order_id=order_id, total_amount=total, payment_method=method)
