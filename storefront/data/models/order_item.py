from sqlalchemy import Column, Integer, ForeignKey, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="SET NULL"), nullable=True)
    figurine_id = Column(Integer, ForeignKey("figurines.id", ondelete="SET NULL"), nullable=True)

    quantity = Column(Integer, nullable=False)
    price_nzd = Column(Numeric(10, 2), nullable=False)  # cena z chwili zakupu

    order = relationship("OrderModel", back_populates="items")
