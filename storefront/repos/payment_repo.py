# storefront/repos/payment_repo.py
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.payment import PaymentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_order_id(self, order_id: int) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.order_id == order_id)
        ).scalar_one_or_none()

    def get_by_gateway_order_id(self, razorpay_order_id: str) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.razorpay_order_id == razorpay_order_id)
        ).scalar_one_or_none()

    def get_by_gateway_payment_id(self, razorpay_payment_id: str) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel)
            .where(PaymentModel.razorpay_payment_id == razorpay_payment_id)
            .limit(1)
        ).scalars().first()

    def save(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        return payment

    def list_payments(
        self,
        *,
        status: str | None = None,
        payment_method: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[PaymentModel], int]:
        """Newest first, with the order and its customer loaded."""
        filters = []
        if status:
            filters.append(PaymentModel.status == status)
        if payment_method:
            filters.append(PaymentModel.payment_method == payment_method)
        if created_from:
            filters.append(PaymentModel.created_at >= created_from)
        if created_to:
            filters.append(PaymentModel.created_at <= created_to)

        total = self.db.execute(
            select(func.count(PaymentModel.id)).where(*filters)
        ).scalar_one()

        payments = self.db.execute(
            select(PaymentModel)
            .where(*filters)
            .options(selectinload(PaymentModel.order).selectinload(OrderModel.user))
            .order_by(PaymentModel.created_at.desc(), PaymentModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(payments), total

    def sum_amount_by_status(self) -> dict[str, object]:
        """SELECT status, SUM(amount) FROM payments GROUP BY status, over the whole ledger."""
        rows = self.db.execute(
            select(PaymentModel.status, func.sum(PaymentModel.amount)).group_by(PaymentModel.status)
        ).all()
        return {status: amount for status, amount in rows}
