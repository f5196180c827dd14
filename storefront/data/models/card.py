# storefront/data/models/card.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from storefront.data.database import Base


class CardModel(Base):
    __tablename__ = "cards"

    id = Column(Integer, primary_key=True)
    card_name = Column(String(255), nullable=False, index=True)
    set_name = Column(String(255), nullable=True)
    card_number = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)
    sport_type = Column(String(50), nullable=True)
    player_name = Column(String(255), nullable=True)

    condition = Column(String(20), nullable=True)  # mint, near_mint, excellent, good, played
    rarity = Column(String(50), nullable=True)
    graded = Column(Boolean, nullable=False, default=False)
    grade_company = Column(String(50), nullable=True)
    grade_value = Column(String(20), nullable=True)

    price_nzd = Column(Numeric(10, 2), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)
    available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
