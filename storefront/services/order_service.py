# storefront/services/order_service.py
import random
import string
import time
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    EmptyCartError,
    InvalidStatusTransitionError,
    OrderCreationError,
    OrderNotFoundError,
    OutOfStockError,
)
from storefront.domain.order_status import OrderStatus, can_transition
from storefront.repos.card_repo import CardRepo
from storefront.repos.cart_repo import CartRepo
from storefront.repos.figurine_repo import FigurineRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import unit_price
from storefront.services.coupon_service import CouponService
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_uppercase
CENTS = Decimal("0.01")


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    """ORD-<timestamp ms w base36>-<5 losowych znaków>. Kolizji nie sprawdzamy."""
    timestamp = _base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36, k=5))
    return f"ORD-{timestamp}-{suffix}"


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status,
        "subtotal_nzd": order.subtotal_nzd,
        "discount_amount": order.discount_amount,
        "total_nzd": order.total_nzd,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "shipping_address": order.shipping_address,
        "notes": order.notes,
        "coupon_id": order.coupon_id,
        "created_at": order.created_at,
    }


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Checkout z koszyka, zmiany statusu i zapytania.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.cards = CardRepo(db)
        self.figurines = FigurineRepo(db)
        self.coupons = CouponService(db)
        self.notification_service = notification_service or NotificationService()

    #commands
    def create_order(
        self,
        user_id: int,
        customer_name: str | None = None,
        customer_email: str | None = None,
        shipping_address: str | None = None,
        notes: str | None = None,
        coupon_id: int | None = None,
        discount_amount: Decimal | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamówienia z koszyka.

        1. Pobiera linie koszyka z aktualnymi cenami
        2. Liczy subtotal i total (rabat walidowany wcześniej przez CouponService)
        3. Zapisuje zamówienie i pozycje z ceną z chwili zakupu
        4. Zmniejsza stan magazynu (warunkowo - brak towaru wycofuje całość)
        5. Czyści koszyk, commit
        6. Wysyła potwierdzenie (async, błędy tylko logowane)
        """
        try:
            rows = self.carts.get_lines(user_id)

            if not rows:
                raise EmptyCartError(user_id)

            subtotal = sum(
                (unit_price(r) * r.CartItemModel.quantity for r in rows), Decimal("0.00")
            ).quantize(CENTS)
            discount = Decimal(discount_amount or 0).quantize(CENTS)
            total = subtotal - discount

            order = self.repo.create_order(
                OrderModel(
                    user_id=user_id,
                    order_number=generate_order_number(),
                    subtotal_nzd=subtotal,
                    discount_amount=discount,
                    total_nzd=total,
                    customer_name=customer_name,
                    customer_email=customer_email,
                    shipping_address=shipping_address,
                    notes=notes,
                    coupon_id=coupon_id,
                    status=OrderStatus.PENDING.value,
                )
            )

            for row in rows:
                line = row.CartItemModel
                self.repo.add_item(
                    OrderItemModel(
                        order_id=order.id,
                        card_id=line.card_id,
                        figurine_id=line.figurine_id,
                        quantity=line.quantity,
                        price_nzd=unit_price(row),
                    )
                )

                if line.card_id is not None:
                    in_stock = self.cards.decrement_stock(line.card_id, line.quantity)
                    product = ("card", line.card_id)
                else:
                    in_stock = self.figurines.decrement_stock(line.figurine_id, line.quantity)
                    product = ("figurine", line.figurine_id)

                if not in_stock:
                    raise OutOfStockError(product[0], product[1], line.quantity)

            self.carts.clear(user_id)
            self.repo.commit()

        except OrderCreationError as e:
            self.repo.rollback()
            logger.warning(f"Order for user {user_id} not created: {e}")
            raise
        except Exception as e:
            self.repo.rollback()
            logger.error(f"Order creation failed for user {user_id}: {e}")
            raise OrderCreationError("Order could not be created, please try again") from e

        logger.info(
            f"Order {order.order_number} created for user {user_id}: "
            f"subtotal {subtotal}, discount {discount}, total {total}"
        )

        try:
            self.notification_service.send_order_confirmation(order.id)
        except Exception as e:
            logger.error(f"Failed to queue order confirmation for {order.order_number}: {e}")

        return order_to_dict(order)

    def checkout(
        self,
        user_id: int,
        customer_name: str,
        customer_email: str,
        shipping_address: str,
        notes: str | None = None,
        coupon_code: str | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Checkout - walidacja kuponu, zamówienie, zapis użycia kuponu.
        """
        coupon_id = None
        discount = Decimal("0.00")

        if coupon_code:
            rows = self.carts.get_lines(user_id)
            if not rows:
                raise EmptyCartError(user_id)

            subtotal = sum((unit_price(r) * r.CartItemModel.quantity for r in rows), Decimal("0.00"))
            validation = self.coupons.validate(coupon_code, subtotal)
            coupon_id = validation.coupon.id
            discount = validation.discount_amount

        order = self.create_order(
            user_id,
            customer_name=customer_name,
            customer_email=customer_email,
            shipping_address=shipping_address,
            notes=notes,
            coupon_id=coupon_id,
            discount_amount=discount,
        )

        if coupon_id is not None:
            # zamówienie już zapisane - błąd zapisu użycia nie cofa checkoutu
            try:
                self.coupons.record_usage(coupon_id, user_id, order["id"], discount)
            except Exception as e:
                logger.error(
                    f"Failed to record coupon {coupon_id} usage for order {order['order_number']}: {e}"
                )

        return order

    def update_status(self, order_id: int, status: str) -> Dict[str, Any]:
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise ValueError(f"Unknown order status: {status}")

        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFoundError(order_id)

        current = OrderStatus(order.status)

        if current == new_status:
            return order_to_dict(order)

        if not can_transition(current, new_status):
            raise InvalidStatusTransitionError(current.value, new_status.value)

        self.repo.update_order_status(order, new_status.value)
        self.repo.commit()

        logger.info(f"Order {order.order_number} status {current.value} -> {new_status.value}")

        try:
            self.notification_service.send_order_status_update(order.id, new_status.value)
        except Exception as e:
            logger.error(f"Failed to queue status update email for {order.order_number}: {e}")

        return order_to_dict(order)

    #query
    def get_order(self, order_id: int, user_id: int | None = None) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFoundError(order_id)

        if user_id is not None and order.user_id != user_id:
            raise PermissionError("Access to this order is not allowed")

        return order_to_dict(order)

    def get_by_order_number(self, order_number: str) -> Dict[str, Any]:
        order = self.repo.get_by_order_number(order_number)

        if not order:
            raise OrderNotFoundError(order_number)

        return order_to_dict(order)

    def get_items(self, order_id: int) -> List[Dict[str, Any]]:
        if not self.repo.get_order(order_id):
            raise OrderNotFoundError(order_id)

        return [
            {
                "id": row.OrderItemModel.id,
                "card_id": row.OrderItemModel.card_id,
                "figurine_id": row.OrderItemModel.figurine_id,
                "name": row.card_name or row.product_name,
                "set_name": row.set_name,
                "quantity": row.OrderItemModel.quantity,
                "price_nzd": row.OrderItemModel.price_nzd,
            }
            for row in self.repo.get_items(order_id)
        ]

    def list_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_for_user(user_id)]

    def list_orders(self, status: str | None = None, search: str | None = None) -> List[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders(status=status, search=search)]
