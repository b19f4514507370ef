from sqlalchemy import Column, Integer, String, Boolean, Numeric

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    link = Column(String(255), nullable=False, unique=True)
    image_link = Column(String(500), nullable=True)
    brand = Column(String(100), nullable=True)
    sku = Column(String(64), nullable=False, unique=True)

    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)

    availability = Column(String(20), nullable=False, default="IN_STOCK")  # IN_STOCK, OUT_OF_STOCK, PREORDER
    # guarded decrement at checkout keeps this from going negative
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
