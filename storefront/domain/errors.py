# storefront/domain/errors.py
"""
Wyjątki domenowe. Serwisy je rzucają, routery tłumaczą na kody HTTP.
"""


class OrderCreationError(Exception):
    """Zamówienie nie zostało utworzone, transakcja wycofana."""


class EmptyCartError(OrderCreationError):
    def __init__(self, user_id: int):
        super().__init__("Cart is empty")
        self.user_id = user_id


class OutOfStockError(OrderCreationError):
    def __init__(self, product_type: str, product_id: int, requested: int):
        super().__init__(
            f"Not enough stock for {product_type} {product_id} (requested {requested})"
        )
        self.product_type = product_type
        self.product_id = product_id
        self.requested = requested


class OrderNotFoundError(LookupError):
    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class InvalidStatusTransitionError(ValueError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from {current} to {requested}")
        self.current = current
        self.requested = requested


class ProductNotFoundError(LookupError):
    def __init__(self, product_type: str, product_id: int):
        super().__init__(f"{product_type.capitalize()} {product_id} not found")
        self.product_type = product_type
        self.product_id = product_id


class CouponNotFoundError(LookupError):
    pass


class ImportNotFoundError(LookupError):
    pass


# kupony - każdy błąd walidacji niesie komunikat dla klienta
class CouponError(ValueError):
    message = "Coupon cannot be applied"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class InvalidCodeError(CouponError):
    message = "Invalid coupon code"


class InactiveCouponError(CouponError):
    message = "This coupon is no longer active"


class NotYetValidError(CouponError):
    message = "This coupon is not yet valid"


class ExpiredError(CouponError):
    message = "This coupon has expired"


class UsageLimitReachedError(CouponError):
    message = "This coupon has reached its usage limit"


class MinimumPurchaseError(CouponError):
    message = "Minimum purchase amount not reached"
