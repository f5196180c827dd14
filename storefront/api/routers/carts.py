#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import (
    CartItemIn,
    CartQuantityIn,
    CartOut,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("/", response_model=CartOut)
def get_cart(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    return get_service(db).get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(payload: CartItemIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.add_item(
            user_id=payload.user_id,
            card_id=payload.card_id,
            figurine_id=payload.figurine_id,
            quantity=payload.quantity,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/items/{line_id}", response_model=CartOut)
def update_item(line_id: int, payload: CartQuantityIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.update_quantity(line_id, payload.user_id, payload.quantity)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/items/{line_id}", response_model=CartOut)
def remove_item(line_id: int, user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    return get_service(db).remove_item(line_id, user_id)


@router.delete("/", status_code=204)
def clear_cart(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    get_service(db).clear_cart(user_id)
