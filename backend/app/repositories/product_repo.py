from typing import List, Optional

from app.models.product import Product
from sqlalchemy import func
from sqlalchemy.orm import Session


def _contains(term: str) -> str:
    """LIKE pattern matching `term` literally anywhere in the value."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def find_by_name(self, name: str, exclude_id: Optional[int] = None) -> Optional[Product]:
        """Case-insensitive exact name lookup, optionally ignoring one record."""
        qry = self.db.query(Product).filter(func.lower(Product.name) == name.lower())
        if exclude_id is not None:
            qry = qry.filter(Product.id != exclude_id)
        return qry.first()

    def list(
        self, category: Optional[str] = None, search: Optional[str] = None
    ) -> List[Product]:
        query = self.db.query(Product)
        if category:
            query = query.filter(Product.category == category)
        if search:
            query = query.filter(Product.name.ilike(_contains(search), escape="\\"))
        return query.order_by(Product.id).all()

    def search_by_name(self, name: str) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.name.ilike(_contains(name), escape="\\"))
            .order_by(Product.id)
            .all()
        )

    def all(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.id).all()

    def add(self, **fields) -> Product:
        p = Product(**fields)
        self.db.add(p)
        self.db.flush()
        return p

    def delete(self, product_id: int) -> bool:
        deleted = (
            self.db.query(Product)
            .filter(Product.id == product_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted > 0
