# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.payment import PaymentModel
from storefront.data.models.user import UserModel
from storefront.domain.status import OrderStatus

_SORTS = {
    "newest": OrderModel.ordered_at.desc(),
    "oldest": OrderModel.ordered_at.asc(),
    "amount_high": OrderModel.total_amount.desc(),
    "amount_low": OrderModel.total_amount.asc(),
}


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        """Adds and flushes so the id is known inside the open transaction. No commit."""
        self.db.add(order)
        self.db.flush()
        return order

    def add_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        return item

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_details(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(
                selectinload(OrderModel.items),
                selectinload(OrderModel.address),
                selectinload(OrderModel.payment),
            )
        ).scalar_one_or_none()

    def list_orders(
        self,
        *,
        user_id: int | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        search: str | None = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[OrderModel], int]:
        filters = []
        if user_id is not None:
            filters.append(OrderModel.user_id == user_id)
        if status:
            filters.append(OrderModel.status == status)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(
                    OrderModel.order_number.ilike(pattern),
                    OrderModel.user.has(
                        or_(UserModel.name.ilike(pattern), UserModel.email.ilike(pattern))
                    ),
                )
            )
        if payment_status:
            filters.append(
                OrderModel.payment.has(PaymentModel.status == payment_status)
            )

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*filters)
        ).scalar_one()

        orders = self.db.execute(
            select(OrderModel)
            .where(*filters)
            .options(
                selectinload(OrderModel.items),
                selectinload(OrderModel.payment),
            )
            .order_by(_SORTS[sort], OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(orders), total

    def count_orders_since(self, since: datetime) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.ordered_at >= since)
        ).scalar_one()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def update_status_if(self, order_id: int, expected_status: str, values: dict) -> int:
        """
        Conditional status write:
        UPDATE orders SET ... WHERE id = :id AND status = :expected
        0 rows means somebody else moved the order first. No commit.
        """
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def confirm_if_pending(self, order_id: int, confirmed_at: datetime) -> int:
        return self.update_status_if(
            order_id,
            OrderStatus.PENDING.value,
            {"status": OrderStatus.CONFIRMED.value, "confirmed_at": confirmed_at},
        )

    def mark_refunded(self, order_id: int) -> int:
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status != OrderStatus.REFUNDED.value)
            .values(status=OrderStatus.REFUNDED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
