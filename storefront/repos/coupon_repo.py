# storefront/repos/coupon_repo.py
from typing import Any, Dict, List

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from storefront.data.models.coupon import CouponModel
from storefront.data.models.coupon_usage import CouponUsageModel


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_coupon(self, coupon_id: int) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def get_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(CouponModel.code == code.strip().upper())
        ).scalar_one_or_none()

    def list_coupons(self) -> List[CouponModel]:
        return list(
            self.db.execute(
                select(CouponModel).order_by(CouponModel.created_at.desc(), CouponModel.id.desc())
            ).scalars()
        )

    def create_coupon(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def update_coupon(self, coupon: CouponModel, changes: Dict[str, Any]) -> CouponModel:
        for key, value in changes.items():
            setattr(coupon, key, value)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete_coupon(self, coupon_id: int) -> int:
        result = self.db.execute(delete(CouponModel).where(CouponModel.id == coupon_id))
        self.db.commit()
        return result.rowcount

    def increment_used_count(self, coupon_id: int) -> int:
        result = self.db.execute(
            update(CouponModel)
            .where(CouponModel.id == coupon_id)
            .values(used_count=CouponModel.used_count + 1)
        )
        return result.rowcount

    def add_usage(self, usage: CouponUsageModel) -> CouponUsageModel:
        self.db.add(usage)
        self.db.flush()
        return usage

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
