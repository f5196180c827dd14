# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import (
    CouponError,
    EmptyCartError,
    InvalidStatusTransitionError,
    OrderCreationError,
    OrderNotFoundError,
    OutOfStockError,
)
from storefront.domain.order_status import OrderStatus
from storefront.domain.schemas import CheckoutIn, OrderItemOut, OrderOut, OrderStatusIn
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(payload: CheckoutIn, db: Session = Depends(get_db)):
    """
    Tworzy zamówienie z koszyka użytkownika (opcjonalnie z kuponem).
    Potwierdzenie mailowe wysyłane asynchronicznie.
    """
    svc = get_service(db)
    try:
        return svc.checkout(
            user_id=payload.user_id,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
            shipping_address=payload.shipping_address,
            notes=payload.notes,
            coupon_code=payload.coupon_code,
        )
    except (EmptyCartError, CouponError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OutOfStockError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except OrderCreationError:
        raise HTTPException(status_code=500, detail="Checkout failed, please try again")


@router.get("/", response_model=List[OrderOut])
def list_user_orders(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    return get_service(db).list_for_user(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{order_id}/items", response_model=List[OrderItemOut])
def get_order_items(
    order_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        svc.get_order(order_id, user_id)
        return svc.get_items(order_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@admin_router.get("/", response_model=List[OrderOut])
def list_orders(
    status: OrderStatus | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    return get_service(db).list_orders(status=status.value if status else None, search=search)


@admin_router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(order_id: int, payload: OrderStatusIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.update_status(order_id, payload.status.value)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
