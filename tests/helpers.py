import hashlib
import hmac
import json
from datetime import datetime, timezone
from decimal import Decimal

from storefront.data.models import (
    UserModel,
    AddressModel,
    ProductModel,
    CartModel,
    CartItemModel,
    OrderModel,
    OrderItemModel,
    PaymentModel,
)

KEY_SECRET = "test_key_secret"
WEBHOOK_SECRET = "test_webhook_secret"


class FakeNotifier:
    def __init__(self):
        self.confirmations = []
        self.status_updates = []

    def send_order_confirmation(self, order_id):
        self.confirmations.append(order_id)
        return True

    def send_order_status_update(self, order_id, status):
        self.status_updates.append((order_id, status))
        return True


class FakeGateway:
    def __init__(self):
        self.created = []
        self.payment_entity = {
            "method": "card",
            "card": {"last4": "4242", "network": "Visa"},
        }

    def create_order(self, amount, currency, receipt, notes):
        self.created.append({"amount": amount, "currency": currency, "receipt": receipt, "notes": notes})
        return {"id": f"order_gw_{len(self.created)}", "amount": int(amount * 100), "currency": currency}

    def fetch_payment(self, payment_id):
        return {"id": payment_id, **self.payment_entity}


class FakeEventGuard:
    def __init__(self):
        self.claims = {}

    def claim(self, event_id, owner):
        if event_id in self.claims:
            return False
        self.claims[event_id] = owner
        return True

    def release(self, event_id, owner):
        if self.claims.get(event_id) == owner:
            del self.claims[event_id]
            return True
        return False


def sign(message, secret=KEY_SECRET):
    if isinstance(message, str):
        message = message.encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def webhook_body(event, payload):
    return json.dumps({"event": event, "payload": payload}).encode()


def make_user(db, name="Asha Rao", email=None):
    user = UserModel(name=name, email=email or f"{name.split()[0].lower()}{db.query(UserModel).count()}@example.com")
    db.add(user)
    db.commit()
    return user


def make_address(db, user):
    address = AddressModel(
        user_id=user.id,
        full_name=user.name,
        phone="9876543210",
        line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
        country="IN",
    )
    db.add(address)
    db.commit()
    return address


def make_product(db, price="1000.00", sale_price=None, stock=10, **kw):
    n = db.query(ProductModel).count() + 1
    product = ProductModel(
        title=kw.pop("title", f"Product {n}"),
        link=kw.pop("link", f"product-{n}"),
        sku=kw.pop("sku", f"SKU-{n}"),
        brand=kw.pop("brand", "Acme"),
        image_link=kw.pop("image_link", f"/uploads/products/{n}.jpg"),
        price=Decimal(price),
        sale_price=Decimal(sale_price) if sale_price is not None else None,
        stock_quantity=stock,
        availability=kw.pop("availability", "IN_STOCK"),
        is_active=kw.pop("is_active", True),
    )
    db.add(product)
    db.commit()
    return product


def fill_cart(db, user, *lines):
    """lines: (product, quantity) pairs."""
    cart = db.query(CartModel).filter_by(user_id=user.id).first()
    if cart is None:
        cart = CartModel(user_id=user.id)
        db.add(cart)
        db.flush()
    for product, quantity in lines:
        db.add(CartItemModel(cart_id=cart.id, product_id=product.id, quantity=quantity))
    db.commit()
    return cart


def make_order(db, user, address, status="PENDING", product=None, quantity=1, total="1180.00", number=None):
    order = OrderModel(
        order_number=number or f"ORD-2026-{db.query(OrderModel).count() + 1:04d}",
        user_id=user.id,
        address_id=address.id,
        status=status,
        subtotal=Decimal("1000.00"),
        shipping_cost=Decimal("0.00"),
        tax_amount=Decimal("180.00"),
        discount=Decimal("0.00"),
        total_amount=Decimal(total),
        ordered_at=datetime.now(timezone.utc),
    )
    db.add(order)
    db.flush()
    if product is not None:
        db.add(
            OrderItemModel(
                order_id=order.id,
                product_id=product.id,
                quantity=quantity,
                price_at_purchase=product.price,
                product_snapshot={"title": product.title},
            )
        )
    db.commit()
    return order


def make_payment(db, order, gateway_order_id="order_gw_1", status="PENDING", payment_id=None):
    payment = PaymentModel(
        order_id=order.id,
        razorpay_order_id=gateway_order_id,
        razorpay_payment_id=payment_id,
        amount=order.total_amount,
        currency="INR",
        status=status,
    )
    db.add(payment)
    db.commit()
    return payment
