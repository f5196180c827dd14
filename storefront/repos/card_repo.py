# storefront/repos/card_repo.py
from typing import Any, Dict

from sqlalchemy import and_, func, select, update
from sqlalchemy.orm import Session

from storefront.data.models.card import CardModel


class CardRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_card(self, card_id: int) -> CardModel | None:
        return self.db.get(CardModel, card_id)

    def find_duplicate(
        self,
        card_name: str,
        set_name: str | None,
        card_number: str | None,
    ) -> CardModel | None:
        """
        Duplikat = ta sama nazwa (bez wielkości liter) i ten sam set i numer,
        przy czym dwa NULLe też się zgadzają.
        """
        if set_name is None:
            set_clause = CardModel.set_name.is_(None)
        else:
            set_clause = func.lower(CardModel.set_name) == set_name.lower()

        if card_number is None:
            number_clause = CardModel.card_number.is_(None)
        else:
            number_clause = CardModel.card_number == card_number

        stmt = (
            select(CardModel)
            .where(
                func.lower(CardModel.card_name) == card_name.lower(),
                set_clause,
                number_clause,
            )
            .order_by(CardModel.id)
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def insert_card(self, values: Dict[str, Any]) -> CardModel:
        card = CardModel(**values)
        self.db.add(card)
        self.db.flush()
        return card

    def update_card(self, card_id: int, values: Dict[str, Any]) -> int:
        result = self.db.execute(
            update(CardModel).where(CardModel.id == card_id).values(**values)
        )
        return result.rowcount

    def add_quantity(self, card_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(CardModel)
            .where(CardModel.id == card_id)
            .values(quantity=CardModel.quantity + quantity)
        )
        return result.rowcount

    def decrement_stock(self, card_id: int, quantity: int) -> bool:
        # warunkowy update - 0 wierszy = brak towaru
        result = self.db.execute(
            update(CardModel)
            .where(and_(CardModel.id == card_id, CardModel.quantity >= quantity))
            .values(quantity=CardModel.quantity - quantity)
        )
        return result.rowcount == 1
