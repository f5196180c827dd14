#import wszystkich modeli żeby SQLAlchemy je zarejestrował w base metadata

from storefront.data.models.user import UserModel
from storefront.data.models.card import CardModel
from storefront.data.models.figurine import FigurineModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.coupon_usage import CouponUsageModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.csv_import import CsvImportModel

__all__ = [
    "UserModel",
    "CardModel",
    "FigurineModel",
    "CartItemModel",
    "CouponModel",
    "CouponUsageModel",
    "OrderModel",
    "OrderItemModel",
    "CsvImportModel",
]
