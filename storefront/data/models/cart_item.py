from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer

from storefront.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # dokładnie jedno z card_id / figurine_id
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="CASCADE"), nullable=True)
    figurine_id = Column(Integer, ForeignKey("figurines.id", ondelete="CASCADE"), nullable=True)

    quantity = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_cart_quantity_positive"),
        CheckConstraint(
            "(card_id IS NOT NULL AND figurine_id IS NULL) OR (card_id IS NULL AND figurine_id IS NOT NULL)",
            name="ck_cart_single_product",
        ),
    )
