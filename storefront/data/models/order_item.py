from sqlalchemy import Column, Integer, ForeignKey, Numeric, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    # navigation only, historical display reads product_snapshot
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    price_at_purchase = Column(Numeric(10, 2), nullable=False)
    product_snapshot = Column(JSON, nullable=False)

    order = relationship("OrderModel", back_populates="items")
