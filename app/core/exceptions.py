# app/core/exceptions.py - Storefront error taxonomy
#
# Every business failure raised by the crud/service layer is a StoreError.
# app.main turns them into {"message": ...} JSON responses with the status below.

from typing import Any, Dict, Optional


class StoreError(Exception):
    status_code = 500
    default_message = "Something went wrong!"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, **self.extra}


class ValidationError(StoreError):
    status_code = 400
    default_message = "Invalid request"


class InvalidPaymentMethod(ValidationError):
    default_message = "Only Cash on Delivery is available."

    def __init__(self, allowed: str, message: Optional[str] = None):
        super().__init__(message, allowedPaymentMethod=allowed)


class InvalidQuantity(ValidationError):
    default_message = "Quantity must be at least 1"


class EmptyCart(ValidationError):
    default_message = "Cart is empty"


class AuthenticationError(StoreError):
    status_code = 401
    default_message = "Invalid credentials"


class AuthorizationError(StoreError):
    status_code = 403
    default_message = "Not allowed"


class NotFoundError(StoreError):
    status_code = 404
    default_message = "Not found"


class ConflictError(StoreError):
    status_code = 409
    default_message = "Conflict"


class InsufficientStock(ConflictError):
    def __init__(self, product_id: int, message: Optional[str] = None):
        self.product_id = product_id
        super().__init__(
            message or f"Insufficient stock for product ID {product_id}",
            productId=product_id,
        )
