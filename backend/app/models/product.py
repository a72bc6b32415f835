from sqlalchemy import Column, Index, Integer, String, func
from app.db import Base

# range of a signed 64-bit INTEGER column
STOCK_MAX = 2**63 - 1
STOCK_MIN = -(2**63)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(256), nullable=False)
    unit = Column(String(64), nullable=True)
    category = Column(String(128), nullable=True, index=True)
    brand = Column(String(128), nullable=True)
    stock = Column(Integer, default=0, nullable=False)
    status = Column(String(64), nullable=True)
    image = Column(String(1024), nullable=True)

    def __repr__(self):
        return f"<Product id={self.id} name={self.name}>"


# names are unique regardless of case
Index("uq_products_name_lower", func.lower(Product.__table__.c.name), unique=True)
