from datetime import datetime, timezone

from app.db import Base
from sqlalchemy import Column, DateTime, Integer, String


class StockChange(Base):
    """One row per stock change made through a product update. Never edited."""

    __tablename__ = "inventory_logs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    # plain reference to products.id; rows outlive a deleted product
    product_id = Column(Integer, nullable=False, index=True)
    old_stock = Column(Integer, nullable=True)
    new_stock = Column(Integer, nullable=False)
    changed_by = Column(String(128), nullable=False, default="system")
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<StockChange product_id={self.product_id} {self.old_stock}->{self.new_stock}>"
