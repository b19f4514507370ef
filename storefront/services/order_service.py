# storefront/services/order_service.py
import math
from datetime import datetime, timezone
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    StoreError,
    EmptyCart,
    NotFound,
    Forbidden,
    InsufficientStock,
    InternalError,
)
from storefront.domain.pricing import PricedLine, calculate_totals, effective_price
from storefront.domain.status import OrderStatus
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.cart_service import ensure_purchasable
from storefront.services.serializers import order_to_dict, product_snapshot
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_NUMBER_ATTEMPTS = 2


class OrderService:
    """
    Order domain: checkout (cart -> order) and the customer/admin read side.
    Status changes live in OrderStatusService.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    # =====================================================
    # CHECKOUT
    # =====================================================
    def create_order_from_cart(self, user_id: int, address_id: int, notes: str | None = None) -> Dict[str, Any]:
        """
        Use Case: place an order from the user's cart.

        1. validates cart, address ownership and stock (no writes yet)
        2. computes totals from current product prices
        3. one transaction: order, items with snapshots, guarded stock
           decrement, cart items cleared
        """
        cart = self.carts.get_cart_by_user(user_id)
        items = self.carts.get_cart_items(cart.id) if cart else []

        if not items:
            raise EmptyCart()

        address = self.users.get_address(address_id)
        if not address:
            raise NotFound("Address not found")

        if address.user_id != user_id:
            raise Forbidden("Address does not belong to you")

        for item in items:
            ensure_purchasable(item.product, item.quantity)

        totals = calculate_totals(
            PricedLine(price=i.product.price, sale_price=i.product.sale_price, quantity=i.quantity)
            for i in items
        )
        cart_id = cart.id

        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order_number = self._next_order_number()
            logger.info(
                f"Placing order {order_number} for user {user_id}: {len(items)} items, "
                f"total {totals.total_amount}"
            )

            try:
                order_id = self._place_order(
                    order_number, user_id, address_id, notes, totals, items, cart_id
                )
                break

            except StoreError:
                self.repo.rollback()
                raise
            except IntegrityError as e:
                self.repo.rollback()
                # the number was taken by a checkout that committed in between
                if attempt < ORDER_NUMBER_ATTEMPTS and self.repo.order_number_exists(order_number):
                    logger.warning(f"Order number {order_number} already taken, retrying")
                    continue
                logger.exception(f"Checkout for user {user_id} failed, transaction rolled back")
                raise InternalError() from e
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.exception(f"Checkout for user {user_id} failed, transaction rolled back")
                raise InternalError() from e

        created = self.repo.get_order_details(order_id)
        logger.info(f"Order {created.order_number} (id {created.id}) created from cart {cart_id}")

        return {
            "order": order_to_dict(created, include_payment=False),
            "payment_required": True,
        }

    def _place_order(self, order_number, user_id, address_id, notes, totals, items, cart_id) -> int:
        """Transactional body of checkout. Raises without rolling back, the caller does that."""
        order = self.repo.add_order(
            OrderModel(
                order_number=order_number,
                user_id=user_id,
                address_id=address_id,
                status=OrderStatus.PENDING.value,
                subtotal=totals.subtotal,
                shipping_cost=totals.shipping_cost,
                tax_amount=totals.tax_amount,
                discount=totals.discount,
                total_amount=totals.total_amount,
                notes=notes,
            )
        )

        #snapshot before touching stock, the product rows are not refreshed afterwards
        for item in items:
            p = item.product
            self.repo.add_item(
                OrderItemModel(
                    order_id=order.id,
                    product_id=p.id,
                    quantity=item.quantity,
                    price_at_purchase=effective_price(p.price, p.sale_price),
                    product_snapshot=product_snapshot(p),
                )
            )

        for item in items:
            # UPDATE ... SET stock = stock - q WHERE id = ? AND stock >= q
            if self.products.decrement_stock(item.product_id, item.quantity) == 0:
                raise InsufficientStock(
                    f'Insufficient stock for "{item.product.title}". '
                    "It was bought by someone else while you were checking out"
                )

        self.carts.clear_items(cart_id)
        order_id = order.id
        self.repo.commit()
        return order_id

    def _next_order_number(self) -> str:
        """ORD-<year>-<NNNN>: next free sequence number within the year."""
        now = datetime.now(timezone.utc)
        start_of_year = datetime(now.year, 1, 1, tzinfo=timezone.utc)

        seq = self.repo.count_orders_since(start_of_year) + 1
        while True:
            number = f"{settings.ORDER_NUMBER_PREFIX}-{now.year}-{seq:04d}"
            if not self.repo.order_number_exists(number):
                return number
            seq += 1

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        order = self.repo.get_order_details(order_id)

        if not order:
            raise NotFound("Order not found")

        if order.user_id != user_id:
            raise Forbidden("Order does not belong to you")

        return order_to_dict(order)

    def list_orders(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
        sort: str = "newest",
    ) -> Dict[str, Any]:
        orders, total = self.repo.list_orders(
            user_id=user_id,
            status=status,
            sort=sort,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return self._page(orders, total, page, limit)

    def admin_get_order(self, order_id: int) -> Dict[str, Any]:
        order = self.repo.get_order_details(order_id)
        if not order:
            raise NotFound("Order not found")
        return order_to_dict(order)

    def admin_list_orders(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        payment_status: str | None = None,
        search: str | None = None,
        sort: str = "newest",
    ) -> Dict[str, Any]:
        orders, total = self.repo.list_orders(
            status=status,
            payment_status=payment_status,
            search=search,
            sort=sort,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return self._page(orders, total, page, limit)

    @staticmethod
    def _page(orders, total: int, page: int, limit: int) -> Dict[str, Any]:
        return {
            "orders": [order_to_dict(o, include_address=False) for o in orders],
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit) if total else 0,
                "total_items": total,
            },
        }
