# storefront/api/routers/coupons.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import CouponError, CouponNotFoundError
from storefront.domain.schemas import (
    CouponCreate,
    CouponOut,
    CouponUpdate,
    CouponValidateIn,
    CouponValidateOut,
)
from storefront.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["coupons"])
admin_router = APIRouter(prefix="/admin/coupons", tags=["admin"])


@router.post("/validate", response_model=CouponValidateOut)
def validate_coupon(payload: CouponValidateIn, db: Session = Depends(get_db)):
    code = payload.code.strip().upper()
    try:
        result = CouponService(db).validate(code, payload.subtotal)
    except CouponError as e:
        return CouponValidateOut(valid=False, code=code, message=str(e))
    return CouponValidateOut(valid=True, code=code, discount_amount=result.discount_amount)


@admin_router.get("/", response_model=List[CouponOut])
def list_coupons(db: Session = Depends(get_db)):
    return CouponService(db).list_coupons()


@admin_router.post("/", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponCreate, db: Session = Depends(get_db)):
    try:
        return CouponService(db).create_coupon(payload)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@admin_router.patch("/{coupon_id}", response_model=CouponOut)
def update_coupon(coupon_id: int, payload: CouponUpdate, db: Session = Depends(get_db)):
    try:
        return CouponService(db).update_coupon(coupon_id, payload)
    except CouponNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@admin_router.delete("/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, db: Session = Depends(get_db)):
    try:
        CouponService(db).delete_coupon(coupon_id)
    except CouponNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
