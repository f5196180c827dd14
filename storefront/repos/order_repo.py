# storefront/repos/order_repo.py
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from storefront.data.models.card import CardModel
from storefront.data.models.figurine import FigurineModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_by_order_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        ).scalar_one_or_none()

    def get_items(self, order_id: int) -> List[Row]:
        stmt = (
            select(
                OrderItemModel,
                CardModel.card_name,
                CardModel.set_name,
                FigurineModel.product_name,
            )
            .outerjoin(CardModel, OrderItemModel.card_id == CardModel.id)
            .outerjoin(FigurineModel, OrderItemModel.figurine_id == FigurineModel.id)
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.id)
        )
        return list(self.db.execute(stmt).all())

    def list_for_user(self, user_id: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def list_orders(self, status: str | None = None, search: str | None = None) -> List[OrderModel]:
        stmt = select(OrderModel)

        if status:
            stmt = stmt.where(OrderModel.status == status)

        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    OrderModel.order_number.ilike(pattern),
                    OrderModel.customer_name.ilike(pattern),
                    OrderModel.customer_email.ilike(pattern),
                )
            )

        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        return list(self.db.execute(stmt).scalars())

    def update_order_status(self, order: OrderModel, status: str) -> OrderModel:
        order.status = status
        self.db.flush()
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
