"""Checkout engine: cart -> order snapshot, stock decrement, cart clearing."""

from decimal import Decimal

import pytest

from app.core.exceptions import ConflictError, EmptyCart, InsufficientStock, InvalidPaymentMethod
from app.core.monitoring import monitoring
from app.models.models import CartItem
from app.models.order import Order, OrderStatus
from app.services import checkout_service

COD = "cash-on-delivery"


def _order_count(db):
    return db.query(Order).count()


def _cart_count(db, user):
    return db.query(CartItem).filter(CartItem.user_id == user.id).count()


class TestCheckoutService:
    def test_total_is_sum_of_price_times_quantity(self, db, user, make_product, add_to_cart):
        a = make_product("A", price="19.99", stock=5)
        b = make_product("B", price="5.25", stock=5)
        add_to_cart(user, a, 3)
        add_to_cart(user, b, 2)

        result = checkout_service.checkout(db, user.id, COD)

        assert result.total_amount == Decimal("70.47")
        assert result.payment_method == COD
        order = db.get(Order, result.order_id)
        assert order.total_amount == Decimal("70.47")
        assert order.status == OrderStatus.pending
        assert order.payment_method == COD

    def test_total_rounds_once_half_up(self):
        class Entry:
            def __init__(self, quantity):
                self.quantity = quantity

        class Priced:
            def __init__(self, price):
                self.price = Decimal(price)

        # Each line alone rounds to 0.00; only the sum reaches a cent
        entries = [(Entry(1), Priced("0.004")) for _ in range(3)]
        assert checkout_service.compute_total(entries) == Decimal("0.01")
        assert checkout_service.compute_total([(Entry(1), Priced("0.125"))]) == Decimal("0.13")
        assert checkout_service.compute_total([(Entry(3), Priced("19.99"))]) == Decimal("59.97")

    def test_success_empties_cart_and_decrements_stock(self, db, user, make_product, add_to_cart):
        a = make_product("A", stock=5)
        b = make_product("B", stock=2)
        add_to_cart(user, a, 3)
        add_to_cart(user, b, 2)

        checkout_service.checkout(db, user.id, COD)

        db.refresh(a)
        db.refresh(b)
        assert a.stock_quantity == 2
        assert b.stock_quantity == 0
        assert _cart_count(db, user) == 0

    def test_order_items_are_a_snapshot(self, db, user, make_product, add_to_cart):
        product = make_product("Lamp", price="12.50", stock=4)
        add_to_cart(user, product, 2)

        result = checkout_service.checkout(db, user.id, COD)

        # Later catalog edits must not leak into the placed order
        db.refresh(product)
        product.name = "Renamed lamp"
        product.price = Decimal("99.00")
        db.commit()

        order = db.get(Order, result.order_id)
        db.refresh(order)
        assert order.items == [
            {"productId": product.id, "name": "Lamp", "price": "12.50", "quantity": 2}
        ]

    def test_invalid_payment_method_is_rejected_first(self, db, user):
        # Empty cart, but the payment method check comes first
        with pytest.raises(InvalidPaymentMethod) as exc:
            checkout_service.checkout(db, user.id, "credit-card")
        assert exc.value.extra == {"allowedPaymentMethod": COD}

        with pytest.raises(InvalidPaymentMethod):
            checkout_service.checkout(db, user.id, None)

    def test_empty_cart_writes_nothing(self, db, user):
        with pytest.raises(EmptyCart):
            checkout_service.checkout(db, user.id, COD)
        assert _order_count(db) == 0

    def test_insufficient_stock_is_all_or_nothing(self, db, user, make_product, add_to_cart):
        ok = make_product("OK", stock=10)
        short = make_product("Short", stock=2)
        add_to_cart(user, ok, 1)
        add_to_cart(user, short, 3)

        with pytest.raises(InsufficientStock) as exc:
            checkout_service.checkout(db, user.id, COD)
        assert exc.value.product_id == short.id

        db.rollback()
        db.refresh(ok)
        db.refresh(short)
        assert _order_count(db) == 0
        assert ok.stock_quantity == 10
        assert short.stock_quantity == 2
        assert _cart_count(db, user) == 2

    def test_failed_conditional_decrement_rolls_back_order(self, db, user, make_product, add_to_cart, monkeypatch):
        first = make_product("First", stock=5)
        second = make_product("Second", stock=5)
        add_to_cart(user, first, 1)
        add_to_cart(user, second, 1)

        real_decrement = checkout_service.crud_product.decrement_stock

        def lose_race_on_second(db_, product_id, quantity):
            if product_id == second.id:
                return False
            return real_decrement(db_, product_id, quantity)

        monkeypatch.setattr(checkout_service.crud_product, "decrement_stock", lose_race_on_second)

        with pytest.raises(InsufficientStock):
            checkout_service.checkout(db, user.id, COD)

        db.refresh(first)
        assert first.stock_quantity == 5
        assert _order_count(db) == 0
        assert _cart_count(db, user) == 2
        assert monitoring.get_health_status()["stock_conflicts"] >= 1

    def test_cart_changed_during_checkout_is_a_conflict(self, db, user, make_product, add_to_cart, monkeypatch):
        product = make_product("Thing", stock=5)
        add_to_cart(user, product, 1)

        monkeypatch.setattr(
            checkout_service.crud_cart, "delete_checked_out_entries", lambda db_, user_id, entries: 0
        )

        with pytest.raises(ConflictError):
            checkout_service.checkout(db, user.id, COD)

        db.refresh(product)
        assert product.stock_quantity == 5
        assert _order_count(db) == 0

    def test_second_checkout_of_same_cart_is_empty(self, db, user, make_product, add_to_cart):
        product = make_product("Thing", stock=5)
        add_to_cart(user, product, 2)

        checkout_service.checkout(db, user.id, COD)
        with pytest.raises(EmptyCart):
            checkout_service.checkout(db, user.id, COD)

        assert _order_count(db) == 1
        db.refresh(product)
        assert product.stock_quantity == 3

    def test_only_callers_cart_is_checked_out(self, db, make_user, make_product, add_to_cart):
        alice = make_user("alice2")
        bob = make_user("bob")
        product = make_product("Shared", stock=10)
        add_to_cart(alice, product, 1)
        add_to_cart(bob, product, 4)

        checkout_service.checkout(db, alice.id, COD)

        assert _cart_count(db, alice) == 0
        assert _cart_count(db, bob) == 1
        db.refresh(product)
        assert product.stock_quantity == 9


class TestCheckoutEndpoint:
    def test_checkout_returns_order_id(self, client, db, user, user_headers, make_product, add_to_cart):
        product = make_product("Desk", price="120.00", stock=3)
        add_to_cart(user, product, 2)

        response = client.post("/api/users/checkout", json={"paymentMethod": COD}, headers=user_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["paymentMethod"] == COD
        assert body["totalAmount"] == "240.00"
        order = db.get(Order, body["orderId"])
        assert order.user_id == user.id

        cart = client.get("/api/users/cart", headers=user_headers).json()
        assert cart["cart"] == []
        assert cart["total"] == "0.00"

    def test_wrong_payment_method_is_400(self, client, user_headers):
        response = client.post("/api/users/checkout", json={"paymentMethod": "paypal"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json() == {
            "message": "Only Cash on Delivery is available.",
            "allowedPaymentMethod": COD,
        }

    def test_missing_body_is_400(self, client, user_headers):
        response = client.post("/api/users/checkout", headers=user_headers)
        assert response.status_code == 400

    def test_empty_cart_is_400(self, client, user_headers):
        response = client.post("/api/users/checkout", json={"paymentMethod": COD}, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    def test_insufficient_stock_is_409(self, client, db, user, user_headers, make_product, add_to_cart):
        product = make_product("Rare", stock=2)
        add_to_cart(user, product, 2)
        product.stock_quantity = 1  # sold elsewhere after it was carted
        db.commit()

        response = client.post("/api/users/checkout", json={"paymentMethod": COD}, headers=user_headers)

        assert response.status_code == 409
        assert response.json() == {
            "message": f"Insufficient stock for product ID {product.id}",
            "productId": product.id,
        }

    def test_checkout_requires_token(self, client):
        response = client.post("/api/users/checkout", json={"paymentMethod": COD})
        assert response.status_code == 401

    def test_orders_are_listed_for_owner_only(self, client, user, user_headers, make_user, headers_for, make_product, add_to_cart):
        product = make_product("Book", price="8.40", stock=5)
        add_to_cart(user, product, 1)
        order_id = client.post(
            "/api/users/checkout", json={"paymentMethod": COD}, headers=user_headers
        ).json()["orderId"]

        mine = client.get("/api/orders/mine", headers=user_headers).json()
        assert [o["id"] for o in mine] == [order_id]
        assert mine[0]["items"][0]["name"] == "Book"
        assert mine[0]["total_amount"] == "8.40"
        assert mine[0]["status"] == "pending"

        other = headers_for(make_user("mallory"))
        assert client.get(f"/api/orders/{order_id}", headers=other).status_code == 404
        assert client.get("/api/orders/mine", headers=other).json() == []
        assert client.get(f"/api/orders/{order_id}", headers=user_headers).status_code == 200

    def test_admin_sets_status_without_restocking(self, client, db, user, user_headers, admin_headers, make_product, add_to_cart):
        product = make_product("Chair", stock=3)
        add_to_cart(user, product, 1)
        order_id = client.post(
            "/api/users/checkout", json={"paymentMethod": COD}, headers=user_headers
        ).json()["orderId"]

        response = client.put(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        db.refresh(product)
        assert product.stock_quantity == 2

        assert client.put(f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=admin_headers).status_code == 400
        assert client.put(f"/api/orders/{order_id}/status", json={"status": "completed"}, headers=user_headers).status_code == 403
        assert client.put("/api/orders/9999/status", json={"status": "completed"}, headers=admin_headers).status_code == 404
