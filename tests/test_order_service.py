# tests/test_order_service.py
"""
Tests for checkout: order creation transaction, coupon flow and queries.
"""

import re
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from storefront.data.models import (
    CardModel,
    CartItemModel,
    CouponUsageModel,
    FigurineModel,
    OrderItemModel,
    OrderModel,
)
from storefront.domain.errors import (
    EmptyCartError,
    InvalidCodeError,
    OrderCreationError,
    OutOfStockError,
)
from storefront.services.order_service import OrderService, generate_order_number


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_order_number_format():
    number = generate_order_number()
    assert re.fullmatch(r"ORD-[0-9A-Z]+-[0-9A-Z]{5}", number)


def test_create_order_snapshots_cart(db, user, make_card, add_to_cart, notifications):
    """One order row, one order_item per cart line, prices captured."""
    card = make_card(price_nzd=Decimal("40.00"), quantity=3)
    add_to_cart(user.id, card_id=card.id, quantity=2)

    order = OrderService(db, notifications).create_order(
        user.id,
        customer_name="Jo Collector",
        customer_email="jo@example.com",
        shipping_address="1 Queen St\nAuckland",
    )

    assert order["status"] == "pending"
    assert order["subtotal_nzd"] == Decimal("80.00")
    assert order["discount_amount"] == Decimal("0.00")
    assert order["total_nzd"] == Decimal("80.00")
    assert _count(db, OrderModel) == 1
    assert _count(db, OrderItemModel) == 1

    item = db.execute(select(OrderItemModel)).scalar_one()
    assert item.price_nzd == Decimal("40.00")
    assert item.quantity == 2


def test_end_to_end_checkout_with_coupon(
    db, user, make_card, make_figurine, make_coupon, add_to_cart, notifications
):
    """Card 50.00 x2 + figurine 25.00 x1, SAVE10 -> discount 12.50, total 112.50."""
    card = make_card(price_nzd=Decimal("50.00"), quantity=5)
    figurine = make_figurine(price_nzd=Decimal("25.00"), quantity=3)
    coupon = make_coupon(code="SAVE10", discount_type="percentage", discount_value=Decimal("10"))
    add_to_cart(user.id, card_id=card.id, quantity=2)
    add_to_cart(user.id, figurine_id=figurine.id, quantity=1)

    order = OrderService(db, notifications).checkout(
        user.id,
        customer_name="Jo Collector",
        customer_email="jo@example.com",
        shipping_address="1 Queen St",
        coupon_code="save10",
    )

    assert order["subtotal_nzd"] == Decimal("125.00")
    assert order["discount_amount"] == Decimal("12.50")
    assert order["total_nzd"] == Decimal("112.50")
    assert order["coupon_id"] == coupon.id

    assert _count(db, CartItemModel) == 0
    assert db.get(CardModel, card.id).quantity == 3
    assert db.get(FigurineModel, figurine.id).quantity == 2

    db.refresh(coupon)
    assert coupon.used_count == 1
    usage = db.execute(select(CouponUsageModel)).scalar_one()
    assert usage.order_id == order["id"]
    assert usage.discount_amount == Decimal("12.50")

    notifications.send_order_confirmation.assert_called_once_with(order["id"])


def test_empty_cart_creates_nothing(db, user, notifications):
    with pytest.raises(EmptyCartError):
        OrderService(db, notifications).create_order(user.id)

    assert _count(db, OrderModel) == 0
    assert _count(db, OrderItemModel) == 0
    notifications.send_order_confirmation.assert_not_called()


def test_empty_cart_is_an_order_creation_error(db, user, notifications):
    with pytest.raises(OrderCreationError):
        OrderService(db, notifications).create_order(user.id)


def test_out_of_stock_rolls_back_whole_order(
    db, user, make_card, make_figurine, add_to_cart, notifications
):
    """Second line lacks stock: nothing is written, first card keeps its quantity."""
    card = make_card(quantity=5)
    figurine = make_figurine(quantity=1)
    add_to_cart(user.id, card_id=card.id, quantity=2)
    add_to_cart(user.id, figurine_id=figurine.id, quantity=2)

    with pytest.raises(OutOfStockError) as exc_info:
        OrderService(db, notifications).create_order(user.id)

    assert exc_info.value.product_type == "figurine"
    assert _count(db, OrderModel) == 0
    assert _count(db, OrderItemModel) == 0
    assert _count(db, CartItemModel) == 2
    assert db.get(CardModel, card.id).quantity == 5
    assert db.get(FigurineModel, figurine.id).quantity == 1


def test_database_error_is_wrapped(db, user, make_card, add_to_cart, notifications):
    card = make_card()
    add_to_cart(user.id, card_id=card.id)
    svc = OrderService(db, notifications)

    with patch.object(svc.cards, "decrement_stock", side_effect=RuntimeError("connection lost")):
        with pytest.raises(OrderCreationError) as exc_info:
            svc.create_order(user.id)

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert _count(db, OrderModel) == 0


def test_notification_failure_does_not_fail_checkout(db, user, make_card, add_to_cart, notifications):
    card = make_card()
    add_to_cart(user.id, card_id=card.id)
    notifications.send_order_confirmation.side_effect = ConnectionError("broker down")

    order = OrderService(db, notifications).create_order(user.id, customer_email="jo@example.com")

    assert order["id"] is not None
    assert _count(db, OrderModel) == 1


def test_invalid_coupon_blocks_checkout(db, user, make_card, add_to_cart, notifications):
    card = make_card()
    add_to_cart(user.id, card_id=card.id)

    with pytest.raises(InvalidCodeError):
        OrderService(db, notifications).checkout(
            user.id, "Jo", "jo@example.com", "1 Queen St", coupon_code="NOPE"
        )

    assert _count(db, OrderModel) == 0
    assert _count(db, CartItemModel) == 1


def test_checkout_without_coupon_records_no_usage(db, user, make_card, add_to_cart, notifications):
    card = make_card()
    add_to_cart(user.id, card_id=card.id)

    order = OrderService(db, notifications).checkout(user.id, "Jo", "jo@example.com", "1 Queen St")

    assert order["coupon_id"] is None
    assert _count(db, CouponUsageModel) == 0


def test_order_queries(db, user, make_card, add_to_cart, notifications):
    card = make_card(card_name="Shohei Ohtani Rookie")
    add_to_cart(user.id, card_id=card.id, quantity=1)
    svc = OrderService(db, notifications)
    order = svc.create_order(user.id, customer_name="Jo Collector", customer_email="jo@example.com")

    assert svc.get_order(order["id"])["order_number"] == order["order_number"]
    assert svc.get_by_order_number(order["order_number"])["id"] == order["id"]

    items = svc.get_items(order["id"])
    assert items[0]["name"] == "Shohei Ohtani Rookie"

    assert [o["id"] for o in svc.list_for_user(user.id)] == [order["id"]]
    assert len(svc.list_orders(status="pending")) == 1
    assert len(svc.list_orders(status="shipped")) == 0
    assert len(svc.list_orders(search="jo collector")) == 1


def test_get_order_of_other_user_is_forbidden(db, user, make_card, add_to_cart, notifications):
    add_to_cart(user.id, card_id=make_card().id)
    svc = OrderService(db, notifications)
    order = svc.create_order(user.id)

    with pytest.raises(PermissionError):
        svc.get_order(order["id"], user_id=user.id + 1)
