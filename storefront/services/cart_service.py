# storefront/services/cart_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel
from storefront.domain.errors import NotFound, Forbidden, ProductUnavailable, InsufficientStock
from storefront.domain.pricing import (
    ZERO,
    effective_price,
    has_active_sale,
    shipping_for,
    round_money,
    format_money,
)
from storefront.domain.status import Availability
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.serializers import product_to_dict
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def ensure_purchasable(product: ProductModel, quantity: int):
    """Availability check shared by cart and checkout. Nothing is reserved."""
    if not product.is_active:
        raise ProductUnavailable(f'Product "{product.title}" is no longer available')

    if product.availability != Availability.IN_STOCK.value:
        raise ProductUnavailable(f'Product "{product.title}" is out of stock')

    if quantity > product.stock_quantity:
        raise InsufficientStock(
            f'Insufficient stock for "{product.title}". Only {product.stock_quantity} available'
        )


class CartService:
    """
    One cart per user, created lazily.
    commands (add, update, remove, clear) modify the cart
    query (get) only reads, apart from creating the empty cart
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        items = self.repo.get_cart_items(cart.id)

        total_items = 0
        subtotal = ZERO
        discount = ZERO
        formatted = []

        for i in items:
            p = i.product
            item_total = effective_price(p.price, p.sale_price) * i.quantity
            if has_active_sale(p.price, p.sale_price):
                discount += (p.price - p.sale_price) * i.quantity

            total_items += i.quantity
            subtotal += item_total

            formatted.append(
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "product": product_to_dict(p),
                    "item_total": format_money(item_total),
                }
            )

        #estimate only, tax is added at checkout
        shipping = shipping_for(round_money(subtotal))

        return {
            "id": cart.id,
            "items": formatted,
            "summary": {
                "total_items": total_items,
                "subtotal": format_money(subtotal),
                "discount": format_money(discount),
                "shipping_estimate": format_money(shipping),
                "free_shipping_threshold": format_money(settings.FREE_SHIPPING_THRESHOLD),
                "eligible_for_free_shipping": shipping == ZERO,
                "estimated_total": format_money(subtotal + shipping),
            },
        }

    #commands
    def add_product(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        product = self.products.get_product(product_id)
        if not product:
            raise NotFound("Product not found")

        cart = self._get_or_create(user_id)
        existing = self.repo.get_cart_item_by_product(cart.id, product_id)
        new_quantity = quantity + (existing.quantity if existing else 0)

        ensure_purchasable(product, new_quantity)

        if existing:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing.quantity} -> {new_quantity}"
            )
            existing.quantity = new_quantity
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
            )

        self.repo.commit()
        return self.get_cart(user_id)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        item = self._owned_item(user_id, item_id)
        ensure_purchasable(item.product, quantity)

        item.quantity = quantity
        self.repo.commit()

        logger.info(f"Cart item {item_id} quantity set to {quantity}")
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        item = self._owned_item(user_id, item_id)
        self.repo.delete_cart_item(item)
        self.repo.commit()

        logger.info(f"Cart item {item_id} removed")
        return self.get_cart(user_id)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        removed = self.repo.clear_items(cart.id)
        self.repo.commit()

        logger.info(f"Cart {cart.id} cleared, {removed} items removed")
        return self.get_cart(user_id)

    def _get_or_create(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        if not self.users.get_user(user_id):
            raise NotFound("User not found")

        created = self.repo.create_cart(CartModel(user_id=user_id))
        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def _owned_item(self, user_id: int, item_id: int) -> CartItemModel:
        item = self.repo.get_cart_item(item_id)
        if not item:
            raise NotFound("Cart item not found")
        if item.cart.user_id != user_id:
            raise Forbidden("Cart item does not belong to you")
        return item
