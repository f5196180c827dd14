# storefront/repos/cart_repo.py
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from storefront.data.models.card import CardModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.figurine import FigurineModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_lines(self, user_id: int) -> List[Row]:
        """Linie koszyka z nazwą i aktualną ceną produktu (karta albo figurka)."""
        stmt = (
            select(
                CartItemModel,
                CardModel.card_name,
                CardModel.set_name,
                CardModel.price_nzd.label("card_price"),
                FigurineModel.product_name,
                FigurineModel.price_nzd.label("figurine_price"),
            )
            .outerjoin(CardModel, CartItemModel.card_id == CardModel.id)
            .outerjoin(FigurineModel, CartItemModel.figurine_id == FigurineModel.id)
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.added_at.desc(), CartItemModel.id.desc())
        )
        return list(self.db.execute(stmt).all())

    def get_line(self, line_id: int, user_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.id == line_id,
                CartItemModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def get_line_for_product(
        self,
        user_id: int,
        card_id: int | None = None,
        figurine_id: int | None = None,
    ) -> CartItemModel | None:
        stmt = select(CartItemModel).where(CartItemModel.user_id == user_id)
        if card_id is not None:
            stmt = stmt.where(CartItemModel.card_id == card_id)
        else:
            stmt = stmt.where(CartItemModel.figurine_id == figurine_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def add_line(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_line(self, line_id: int, user_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.id == line_id,
                CartItemModel.user_id == user_id,
            )
        )
        return result.rowcount

    def clear(self, user_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.user_id == user_id)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
