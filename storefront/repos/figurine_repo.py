# storefront/repos/figurine_repo.py
from sqlalchemy import and_, update
from sqlalchemy.orm import Session

from storefront.data.models.figurine import FigurineModel


class FigurineRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_figurine(self, figurine_id: int) -> FigurineModel | None:
        return self.db.get(FigurineModel, figurine_id)

    def decrement_stock(self, figurine_id: int, quantity: int) -> bool:
        result = self.db.execute(
            update(FigurineModel)
            .where(and_(FigurineModel.id == figurine_id, FigurineModel.quantity >= quantity))
            .values(quantity=FigurineModel.quantity - quantity)
        )
        return result.rowcount == 1
