from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.orm import Session
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import ProductNotFoundError
from storefront.repos.card_repo import CardRepo
from storefront.repos.cart_repo import CartRepo
from storefront.repos.figurine_repo import FigurineRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def unit_price(row) -> Decimal:
    """Aktualna cena linii koszyka - karta albo figurka, zależnie od referencji."""
    line = row.CartItemModel
    price = row.card_price if line.card_id is not None else row.figurine_price
    if price is None:
        return Decimal("0.00")
    return Decimal(str(price))


class CartService:
    """
    Koszyk użytkownika: jedna linia na produkt (karta albo figurka).
    commands (add, update, remove, clear) modyfikują stan
    query (get, total) tylko odczyt
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.cards = CardRepo(db)
        self.figurines = FigurineRepo(db)

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        rows = self.repo.get_lines(user_id)

        items = []
        for row in rows:
            line = row.CartItemModel
            price = unit_price(row)
            items.append(
                {
                    "id": line.id,
                    "card_id": line.card_id,
                    "figurine_id": line.figurine_id,
                    "name": row.card_name if line.card_id is not None else row.product_name,
                    "quantity": line.quantity,
                    "unit_price": price,
                    "line_total": price * line.quantity,
                }
            )

        total = sum((i["line_total"] for i in items), Decimal("0.00"))

        return {
            "user_id": user_id,
            "items": items,
            "total": total,
        }

    def get_total(self, user_id: int) -> Decimal:
        rows = self.repo.get_lines(user_id)
        return sum((unit_price(r) * r.CartItemModel.quantity for r in rows), Decimal("0.00"))

    #commands
    def add_item(
        self,
        user_id: int,
        card_id: int | None = None,
        figurine_id: int | None = None,
        quantity: int = 1,
    ) -> Dict[str, Any]:

        # Walidacje
        if (card_id is None) == (figurine_id is None):
            raise ValueError("Provide exactly one of card_id or figurine_id")

        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        if card_id is not None and not self.cards.get_card(card_id):
            raise ProductNotFoundError("card", card_id)

        if figurine_id is not None and not self.figurines.get_figurine(figurine_id):
            raise ProductNotFoundError("figurine", figurine_id)

        # ten sam produkt już w koszyku -> zwiększ ilość
        existing = self.repo.get_line_for_product(user_id, card_id=card_id, figurine_id=figurine_id)

        if existing:
            logger.info(
                f"Product already in cart of user {user_id}, quantity "
                f"{existing.quantity} -> {existing.quantity + quantity}"
            )
            existing.quantity += quantity
            self.repo.add_line(existing)
        else:
            logger.info(
                f"Adding {'card ' + str(card_id) if card_id else 'figurine ' + str(figurine_id)} "
                f"to cart of user {user_id}"
            )
            self.repo.add_line(
                CartItemModel(
                    user_id=user_id,
                    card_id=card_id,
                    figurine_id=figurine_id,
                    quantity=quantity,
                )
            )

        self.repo.commit()
        return self.get_cart(user_id)

    def update_quantity(self, line_id: int, user_id: int, quantity: int) -> Dict[str, Any]:
        line = self.repo.get_line(line_id, user_id)

        if not line:
            raise LookupError("Cart item not found")

        if quantity <= 0:
            # ilość 0 = usunięcie linii
            self.repo.delete_line(line_id, user_id)
        else:
            line.quantity = quantity
            self.repo.add_line(line)

        self.repo.commit()
        logger.info(f"Cart item {line_id} of user {user_id} set to quantity {quantity}")
        return self.get_cart(user_id)

    def remove_item(self, line_id: int, user_id: int) -> Dict[str, Any]:
        removed = self.repo.delete_line(line_id, user_id)
        self.repo.commit()

        if removed:
            logger.info(f"Cart item {line_id} removed for user {user_id}")

        return self.get_cart(user_id)

    def clear_cart(self, user_id: int) -> int:
        removed = self.repo.clear(user_id)
        self.repo.commit()
        logger.info(f"Cleared {removed} cart item(s) for user {user_id}")
        return removed
