# storefront/services/serializers.py
# dicts handed to the routers; money always leaves as a two-decimal string
from typing import Any, Dict

from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.data.models.payment import PaymentModel
from storefront.data.models.product import ProductModel
from storefront.domain.pricing import format_money


def product_to_dict(p: ProductModel) -> Dict[str, Any]:
    return {
        "id": p.id,
        "title": p.title,
        "link": p.link,
        "image_link": p.image_link,
        "brand": p.brand,
        "sku": p.sku,
        "price": format_money(p.price),
        "sale_price": format_money(p.sale_price),
        "availability": p.availability,
        "stock_quantity": p.stock_quantity,
        "is_active": p.is_active,
    }


def product_snapshot(p: ProductModel) -> Dict[str, Any]:
    """Frozen copy stored on the order item; keys are already wire-format."""
    return {
        "title": p.title,
        "link": p.link,
        "imageLink": p.image_link,
        "brand": p.brand,
        "sku": p.sku,
        "price": format_money(p.price),
        "salePrice": format_money(p.sale_price),
    }


def address_to_dict(a: AddressModel | None) -> Dict[str, Any] | None:
    if a is None:
        return None
    return {
        "id": a.id,
        "user_id": a.user_id,
        "full_name": a.full_name,
        "phone": a.phone,
        "line1": a.line1,
        "line2": a.line2,
        "city": a.city,
        "state": a.state,
        "postal_code": a.postal_code,
        "country": a.country,
    }


def payment_to_dict(p: PaymentModel | None) -> Dict[str, Any] | None:
    if p is None:
        return None
    return {
        "id": p.id,
        "razorpay_order_id": p.razorpay_order_id,
        "razorpay_payment_id": p.razorpay_payment_id,
        "amount": format_money(p.amount),
        "currency": p.currency,
        "status": p.status,
        "payment_method": p.payment_method,
        "card_last4": p.card_last4,
        "card_network": p.card_network,
        "bank_name": p.bank_name,
        "vpa": p.vpa,
        "wallet_name": p.wallet_name,
        "failure_reason": p.failure_reason,
        "failure_code": p.failure_code,
        "paid_at": p.paid_at,
    }


def order_to_dict(
    order: OrderModel,
    *,
    include_address: bool = True,
    include_payment: bool = True,
) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "address_id": order.address_id,
        "status": order.status,
        "subtotal": format_money(order.subtotal),
        "shipping_cost": format_money(order.shipping_cost),
        "tax_amount": format_money(order.tax_amount),
        "discount": format_money(order.discount),
        "total_amount": format_money(order.total_amount),
        "notes": order.notes,
        "tracking_number": order.tracking_number,
        "tracking_url": order.tracking_url,
        "ordered_at": order.ordered_at,
        "confirmed_at": order.confirmed_at,
        "processed_at": order.processed_at,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "cancelled_at": order.cancelled_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "quantity": i.quantity,
                "price_at_purchase": format_money(i.price_at_purchase),
                "product_snapshot": i.product_snapshot,
            }
            for i in order.items
        ],
        "address": address_to_dict(order.address) if include_address else None,
        "payment": payment_to_dict(order.payment) if include_payment else None,
    }


def ledger_entry_to_dict(p: PaymentModel) -> Dict[str, Any]:
    """Admin ledger row: the payment plus the order number and who paid."""
    order = p.order
    user = order.user if order else None
    return {
        "id": p.id,
        "order_id": p.order_id,
        "order_number": order.order_number if order else None,
        "razorpay_payment_id": p.razorpay_payment_id,
        "amount": format_money(p.amount),
        "currency": p.currency,
        "status": p.status,
        "payment_method": p.payment_method,
        "card_network": p.card_network,
        "card_last4": p.card_last4,
        "vpa": p.vpa,
        "wallet_name": p.wallet_name,
        "bank_name": p.bank_name,
        "paid_at": p.paid_at,
        "created_at": p.created_at,
        "user": {"name": user.name, "email": user.email} if user else None,
    }
