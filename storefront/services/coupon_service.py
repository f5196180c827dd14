# storefront/services/coupon_service.py
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.coupon import CouponModel
from storefront.data.models.coupon_usage import CouponUsageModel
from storefront.domain.errors import (
    CouponNotFoundError,
    ExpiredError,
    InactiveCouponError,
    InvalidCodeError,
    MinimumPurchaseError,
    NotYetValidError,
    UsageLimitReachedError,
)
from storefront.domain.schemas import CouponCreate, CouponUpdate
from storefront.repos.coupon_repo import CouponRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CouponValidation:
    coupon: CouponModel
    discount_amount: Decimal


def _as_utc(value: datetime | None) -> datetime | None:
    # sqlite zwraca naiwne daty
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def calculate_discount(coupon: CouponModel, subtotal: Decimal) -> Decimal:
    """
    Rabat dla danego subtotalu: procent albo kwota stała, potem limit
    max_discount_amount, na koniec nigdy więcej niż subtotal.
    """
    subtotal = Decimal(subtotal)
    value = Decimal(coupon.discount_value)

    if coupon.discount_type == "percentage":
        discount = subtotal * value / Decimal(100)
    elif coupon.discount_type == "fixed":
        discount = value
    else:
        discount = Decimal("0")

    if coupon.max_discount_amount is not None:
        discount = min(discount, Decimal(coupon.max_discount_amount))

    discount = min(discount, subtotal)
    discount = max(discount, Decimal("0"))
    return discount.quantize(CENTS, rounding=ROUND_HALF_UP)


class CouponService:
    def __init__(self, db: Session):
        self.repo = CouponRepo(db)

    def validate(self, code: str, subtotal: Decimal, now: datetime | None = None) -> CouponValidation:
        """
        Sprawdza kupon dla subtotalu i liczy rabat. Tylko odczyt - used_count
        zmienia wyłącznie record_usage.
        """
        coupon = self.repo.get_by_code(code)

        if not coupon:
            raise InvalidCodeError()

        if not coupon.active:
            raise InactiveCouponError()

        now = now or datetime.now(timezone.utc)
        valid_from = _as_utc(coupon.valid_from)
        valid_until = _as_utc(coupon.valid_until)

        if valid_from and valid_from > now:
            raise NotYetValidError()

        if valid_until and valid_until < now:
            raise ExpiredError()

        if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
            raise UsageLimitReachedError()

        subtotal = Decimal(subtotal)
        if coupon.min_purchase_amount is not None and subtotal < Decimal(coupon.min_purchase_amount):
            raise MinimumPurchaseError(
                f"Minimum purchase of NZD ${Decimal(coupon.min_purchase_amount):.2f} required"
            )

        return CouponValidation(coupon=coupon, discount_amount=calculate_discount(coupon, subtotal))

    def record_usage(
        self,
        coupon_id: int,
        user_id: int,
        order_id: int | None,
        discount_amount: Decimal,
    ) -> CouponUsageModel:
        """used_count + 1 i wpis w coupon_usage w jednej transakcji."""
        try:
            if self.repo.increment_used_count(coupon_id) == 0:
                raise CouponNotFoundError(f"Coupon {coupon_id} not found")

            usage = self.repo.add_usage(
                CouponUsageModel(
                    coupon_id=coupon_id,
                    user_id=user_id,
                    order_id=order_id,
                    discount_amount=discount_amount,
                )
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Coupon {coupon_id} used by user {user_id} on order {order_id}")
        return usage

    # admin
    def create_coupon(self, payload: CouponCreate) -> CouponModel:
        data = payload.model_dump()
        data["code"] = data["code"].strip().upper()

        try:
            coupon = self.repo.create_coupon(CouponModel(**data))
        except IntegrityError:
            self.repo.rollback()
            raise ValueError(f"Coupon code {data['code']} already exists")

        logger.info(f"Coupon {coupon.code} created")
        return coupon

    def get_coupon(self, coupon_id: int) -> CouponModel:
        coupon = self.repo.get_coupon(coupon_id)
        if not coupon:
            raise CouponNotFoundError(f"Coupon {coupon_id} not found")
        return coupon

    def list_coupons(self) -> List[CouponModel]:
        return self.repo.list_coupons()

    def update_coupon(self, coupon_id: int, payload: CouponUpdate) -> CouponModel:
        coupon = self.get_coupon(coupon_id)
        changes = payload.model_dump(exclude_unset=True)
        return self.repo.update_coupon(coupon, changes)

    def delete_coupon(self, coupon_id: int) -> None:
        if not self.repo.delete_coupon(coupon_id):
            raise CouponNotFoundError(f"Coupon {coupon_id} not found")
        logger.info(f"Coupon {coupon_id} deleted")
