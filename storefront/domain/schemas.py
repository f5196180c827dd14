# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Any, Dict, List, Literal
from decimal import Decimal
from datetime import datetime

from storefront.domain.order_status import OrderStatus


class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    user_id: int = Field(..., gt=0)
    card_id: int | None = Field(None, gt=0)
    figurine_id: int | None = Field(None, gt=0)
    quantity: int = Field(1, gt=0, description="Ilość produktu (musi być > 0)")

    @model_validator(mode="after")
    def exactly_one_product(self):
        if (self.card_id is None) == (self.figurine_id is None):
            raise ValueError("Provide exactly one of card_id or figurine_id")
        return self


class CartQuantityIn(BaseModel):
    user_id: int = Field(..., gt=0)
    quantity: int


class CartLineOut(BaseModel):
    id: int
    card_id: int | None = None
    figurine_id: int | None = None
    name: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    user_id: int
    items: List[CartLineOut]
    total: Decimal


class CheckoutIn(BaseModel):
    """Schema dla checkoutu - dane klienta i opcjonalny kupon."""

    user_id: int = Field(..., gt=0)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: str = Field(..., min_length=3, max_length=255)
    shipping_address: str = Field(..., min_length=1)
    notes: str | None = None
    coupon_code: str | None = None


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    order_number: str
    user_id: int
    status: str
    subtotal_nzd: Decimal
    discount_amount: Decimal
    total_nzd: Decimal
    customer_name: str | None = None
    customer_email: str | None = None
    shipping_address: str | None = None
    notes: str | None = None
    coupon_id: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    id: int
    card_id: int | None = None
    figurine_id: int | None = None
    name: str | None = None
    set_name: str | None = None
    quantity: int
    price_nzd: Decimal


class OrderStatusIn(BaseModel):
    status: OrderStatus


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    discount_type: Literal["percentage", "fixed"]
    discount_value: Decimal = Field(..., gt=0)
    min_purchase_amount: Decimal | None = Field(None, ge=0)
    max_discount_amount: Decimal | None = Field(None, gt=0)
    usage_limit: int | None = Field(None, gt=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool = True


class CouponUpdate(BaseModel):
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: Decimal | None = Field(None, gt=0)
    min_purchase_amount: Decimal | None = Field(None, ge=0)
    max_discount_amount: Decimal | None = Field(None, gt=0)
    usage_limit: int | None = Field(None, gt=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool | None = None


class CouponOut(BaseModel):
    id: int
    code: str
    discount_type: str
    discount_value: Decimal
    min_purchase_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None
    usage_limit: int | None = None
    used_count: int
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool

    model_config = ConfigDict(from_attributes=True)


class CouponValidateIn(BaseModel):
    code: str = Field(..., min_length=1)
    subtotal: Decimal = Field(..., ge=0)


class CouponValidateOut(BaseModel):
    valid: bool
    code: str
    discount_amount: Decimal = Decimal("0.00")
    message: str | None = None


class ImportResult(BaseModel):
    """Wynik importu CSV - liczniki i log błędów powiązany z rekordem csv_imports."""

    import_id: int
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    total_rows: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class ImportPreviewOut(BaseModel):
    total_rows: int
    valid_rows: int
    error_rows: int
    duplicates: int
    unique: int
    errors: List[Dict[str, Any]]
    duplicate_list: List[Dict[str, Any]]
    sample_rows: List[Dict[str, Any]]


class CsvImportOut(BaseModel):
    id: int
    user_id: int | None = None
    filename: str
    total_rows: int
    successful_rows: int
    failed_rows: int
    duplicates_skipped: int
    status: str
    error_log: List[Dict[str, Any]]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)
