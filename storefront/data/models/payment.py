from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)

    razorpay_order_id = Column(String(64), nullable=True, unique=True)
    razorpay_payment_id = Column(String(64), nullable=True, index=True)
    razorpay_signature = Column(String(128), nullable=True)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default="PENDING")

    payment_method = Column(String(20), nullable=True)
    card_last4 = Column(String(4), nullable=True)
    card_network = Column(String(32), nullable=True)
    bank_name = Column(String(64), nullable=True)
    vpa = Column(String(100), nullable=True)
    wallet_name = Column(String(64), nullable=True)

    failure_reason = Column(String(255), nullable=True)
    failure_code = Column(String(64), nullable=True)

    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("OrderModel", back_populates="payment")
