from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.stock_change import StockChange


class StockChangeRepository:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self, product_id: int, old_stock: Optional[int], new_stock: int, changed_by: str
    ) -> StockChange:
        entry = StockChange(
            product_id=product_id,
            old_stock=old_stock,
            new_stock=new_stock,
            changed_by=changed_by,
        )
        self.db.add(entry)
        self.db.flush()  # surfaces insert errors before the product row is touched
        return entry

    def for_product(self, product_id: int) -> List[StockChange]:
        return (
            self.db.query(StockChange)
            .filter(StockChange.product_id == product_id)
            .order_by(StockChange.timestamp.desc(), StockChange.id.desc())
            .all()
        )
