import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.product import Product
from app.models.stock_change import StockChange
from app.repositories.stock_change_repo import StockChangeRepository

log = logging.getLogger(__name__)


class StockAuditLogger:
    """
    Appends a StockChange row when an update moves a product's stock.

    Only ProductService.update calls this. The row is flushed before the
    product is modified, so a failed audit write aborts the update.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = StockChangeRepository(db)

    def record_if_changed(
        self, product: Product, new_stock: int, changed_by: Optional[str] = None
    ) -> Optional[StockChange]:
        old_stock = product.stock
        if old_stock is not None and int(new_stock) == int(old_stock):
            return None
        actor = changed_by or settings.DEFAULT_ACTOR
        entry = self.repo.record(product.id, old_stock, int(new_stock), actor)
        log.info(
            "stock change product_id=%s %s -> %s by %s",
            product.id,
            old_stock,
            new_stock,
            actor,
        )
        return entry

    def history(self, product_id: int) -> List[StockChange]:
        return self.repo.for_product(product_id)
