import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.product import Product
from app.models.stock_change import StockChange
from app.repositories.product_repo import ProductRepository
from app.schemas.product_schema import ProductCreate, ProductUpdate
from app.services.stock_audit import StockAuditLogger

log = logging.getLogger(__name__)


class ProductService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository(db)
        self.audit = StockAuditLogger(db)

    def list_products(
        self, category: Optional[str] = None, search: Optional[str] = None
    ) -> List[Product]:
        return self.repo.list(category=category, search=search)

    def search(self, name: Optional[str]) -> List[Product]:
        return self.repo.search_by_name(name or "")

    def get(self, product_id: int) -> Product:
        p = self.repo.get(product_id)
        if not p:
            raise NotFoundError("Product not found")
        return p

    def history(self, product_id: int) -> List[StockChange]:
        return self.audit.history(product_id)

    def create(self, payload: ProductCreate) -> Product:
        name = _clean_name(payload.name)
        if payload.stock < 0:
            raise ValidationError("Stock must be >= 0")
        if self.repo.find_by_name(name):
            raise ConflictError("Name must be unique")

        fields = payload.model_dump()
        fields["name"] = name
        try:
            p = self.repo.add(**fields)
            self.db.commit()
        except IntegrityError:
            # lost a race against another insert of the same name
            self.db.rollback()
            raise ConflictError("Name must be unique")
        self.db.refresh(p)
        log.info("created product id=%s name=%r", p.id, p.name)
        return p

    def update(self, product_id: int, payload: ProductUpdate) -> Product:
        """
        Apply only the fields present in the request.

        If stock is supplied and differs from the value read here, the audit
        row is written first; the product row is changed only after that
        write succeeded. Not atomic against a concurrent update of the same
        product.
        """
        p = self.get(product_id)
        fields = payload.supplied_fields()

        if "stock" in fields:
            if fields["stock"] is None:
                raise ValidationError("Stock must be an integer")
            if fields["stock"] < 0:
                raise ValidationError("Stock must be >= 0")
        if "name" in fields:
            fields["name"] = _clean_name(fields["name"])
            if self.repo.find_by_name(fields["name"], exclude_id=p.id):
                raise ConflictError("Name already exists")

        try:
            if "stock" in fields:
                self.audit.record_if_changed(p, fields["stock"], payload.changed_by)
            for key, value in fields.items():
                setattr(p, key, value)
            self.db.flush()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Name already exists")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(p)
        return p

    def delete(self, product_id: int) -> None:
        if not self.repo.delete(product_id):
            self.db.rollback()
            raise NotFoundError("Product not found")
        self.db.commit()
        log.info("deleted product id=%s", product_id)


def _clean_name(name: Optional[str]) -> str:
    if name is None or str(name).strip() == "":
        raise ValidationError("Name is required")
    return str(name).strip()
