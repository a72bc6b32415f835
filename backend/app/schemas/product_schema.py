# backend/app/schemas/product_schema.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from pydantic import ConfigDict

from app.models.product import STOCK_MAX


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    unit: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    stock: int
    status: Optional[str] = None
    image: Optional[str] = None


class ProductCreate(BaseModel):
    # name is checked by the service so a missing name gets the same 400 as a blank one
    name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    stock: int = Field(0, le=STOCK_MAX)
    status: Optional[str] = None
    image: Optional[str] = None


class ProductUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are applied;
    use `model_fields_set` to tell an omitted field from an explicit "" or null.
    """

    model_config = ConfigDict(populate_by_name=True)
    name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    stock: Optional[int] = Field(None, le=STOCK_MAX)
    status: Optional[str] = None
    image: Optional[str] = None
    changed_by: Optional[str] = Field(None, alias="changedBy")

    def supplied_fields(self) -> dict:
        fields = self.model_dump(include=self.model_fields_set, by_alias=False)
        fields.pop("changed_by", None)
        return fields


class StockChangeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    product_id: int
    old_stock: Optional[int] = None
    new_stock: int
    changed_by: str
    timestamp: datetime
