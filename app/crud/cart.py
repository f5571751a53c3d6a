import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple
from sqlalchemy import and_, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.exceptions import ConflictError, InsufficientStock, InvalidQuantity, NotFoundError
from app.models.models import CartItem
from app.models.product import Product

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DEFAULT_QUANTITY = 1


def format_amount(amount: Decimal) -> str:
    """Two-decimal fixed format, rounding half up."""
    return str(Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP))


def _require_positive(quantity) -> int:
    # bool is an int subclass; True must not sneak in as 1
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity()
    return quantity


def get_cart_entries(db: Session, user_id: int) -> List[Tuple[CartItem, Product]]:
    """Cart rows joined with their live product rows, newest first."""
    return (
        db.query(CartItem, Product)
        .join(Product, CartItem.product_id == Product.id)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        .all()
    )


def get_cart(db: Session, user_id: int) -> dict:
    entries = get_cart_entries(db, user_id)
    lines = [
        {
            "cart_id": item.id,
            "quantity": item.quantity,
            "id": product.id,
            "name": product.name,
            "price": product.price,
            "image_url": product.image_url,
            "stock_quantity": product.stock_quantity,
        }
        for item, product in entries
    ]
    total = sum((product.price * item.quantity for item, product in entries), Decimal("0"))
    return {"cart": lines, "total": format_amount(total), "itemCount": len(lines)}


def add_to_cart(db: Session, user_id: int, product_id: int, quantity: Optional[int] = None) -> CartItem:
    """Add ``quantity`` units of a product, merging with an existing entry.

    An omitted quantity means one unit; an explicit zero or negative quantity
    is rejected rather than defaulted.
    """
    requested = DEFAULT_QUANTITY if quantity is None else _require_positive(quantity)

    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    if product.stock_quantity < requested:
        raise InsufficientStock(product_id, "Insufficient stock")

    item = (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .first()
    )
    if item is not None:
        new_quantity = item.quantity + requested
        if product.stock_quantity < new_quantity:
            raise InsufficientStock(product_id, "Insufficient stock for requested quantity")
        item.quantity = new_quantity
    else:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=requested)
        db.add(item)

    try:
        db.commit()
    except IntegrityError:
        # Same (user, product) inserted by a parallel request
        db.rollback()
        logger.warning(f"Concurrent add to cart for user {user_id}, product {product_id}")
        raise ConflictError("Cart was updated by another request, please try again")
    db.refresh(item)
    return item


def _get_own_entry(db: Session, user_id: int, cart_id: int) -> CartItem:
    # Someone else's entry is reported exactly like a missing one
    item = (
        db.query(CartItem)
        .filter(CartItem.id == cart_id, CartItem.user_id == user_id)
        .first()
    )
    if item is None:
        raise NotFoundError("Cart item not found")
    return item


def update_cart_item(db: Session, user_id: int, cart_id: int, quantity: int) -> CartItem:
    """Replace the quantity of an existing entry (no merging)."""
    quantity = _require_positive(quantity)
    item = _get_own_entry(db, user_id, cart_id)

    if item.product.stock_quantity < quantity:
        raise InsufficientStock(item.product_id, "Insufficient stock")

    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item


def remove_cart_item(db: Session, user_id: int, cart_id: int) -> None:
    item = _get_own_entry(db, user_id, cart_id)
    db.delete(item)
    db.commit()


def clear_cart(db: Session, user_id: int) -> int:
    result = db.execute(
        delete(CartItem)
        .where(CartItem.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount


def delete_checked_out_entries(db: Session, user_id: int, entries: Sequence[CartItem]) -> int:
    """Delete exactly the given entries, as they were read. Does not commit.

    An entry whose quantity changed since it was read is left alone, so the
    caller can compare the returned count with ``len(entries)`` to detect a
    cart that moved underneath it.
    """
    if not entries:
        return 0
    matches = [
        and_(CartItem.id == item.id, CartItem.quantity == item.quantity)
        for item in entries
    ]
    result = db.execute(
        delete(CartItem)
        .where(CartItem.user_id == user_id, or_(*matches))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
