# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.domain.status import Availability, OrderStatus, PaymentStatus

T = TypeVar("T")


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


# =====================================================
# users / addresses
# =====================================================
class UserCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserOut(CamelModel):
    id: int
    name: str
    email: str


class AddressIn(CamelModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=10, max_length=15)
    line1: str = Field(..., min_length=1, max_length=255)
    line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=3, max_length=20)
    country: str = Field("IN", min_length=2, max_length=2)


class AddressOut(CamelModel):
    id: int
    user_id: int
    full_name: str
    phone: str
    line1: str
    line2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str


# =====================================================
# products
# =====================================================
class ProductCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    link: str = Field(..., min_length=1, max_length=255)
    image_link: Optional[str] = None
    brand: Optional[str] = None
    sku: str = Field(..., min_length=1, max_length=64)
    price: Decimal = Field(..., gt=0, decimal_places=2)
    sale_price: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    availability: Availability = Availability.IN_STOCK
    stock_quantity: int = Field(0, ge=0)
    is_active: bool = True


class ProductOut(CamelModel):
    id: int
    title: str
    link: str
    image_link: Optional[str] = None
    brand: Optional[str] = None
    sku: str
    price: str
    sale_price: Optional[str] = None
    availability: Availability
    stock_quantity: int
    is_active: bool


# =====================================================
# cart
# =====================================================
class CartItemIn(CamelModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0, le=100)


class CartItemUpdate(CamelModel):
    quantity: int = Field(..., gt=0, le=100)


class CartItemOut(CamelModel):
    id: int
    product_id: int
    quantity: int
    product: ProductOut
    item_total: str


class CartSummary(CamelModel):
    total_items: int
    subtotal: str
    discount: str
    shipping_estimate: str
    free_shipping_threshold: str
    eligible_for_free_shipping: bool
    estimated_total: str


class CartOut(CamelModel):
    id: int
    items: List[CartItemOut]
    summary: CartSummary


# =====================================================
# orders
# =====================================================
class OrderCreate(CamelModel):
    address_id: int = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=1000)


class CancelOrderIn(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


class UpdateOrderStatusIn(CamelModel):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)
    tracking_url: Optional[str] = Field(None, max_length=500, pattern=r"^https?://\S+$")
    notes: Optional[str] = Field(None, max_length=1000)


class PaymentOut(CamelModel):
    id: int
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    amount: str
    currency: str
    status: PaymentStatus
    payment_method: Optional[str] = None
    card_last4: Optional[str] = None
    card_network: Optional[str] = None
    bank_name: Optional[str] = None
    vpa: Optional[str] = None
    wallet_name: Optional[str] = None
    failure_reason: Optional[str] = None
    failure_code: Optional[str] = None
    paid_at: Optional[datetime] = None


class OrderItemOut(CamelModel):
    id: int
    product_id: int
    quantity: int
    price_at_purchase: str
    product_snapshot: dict[str, Any]


class OrderOut(CamelModel):
    id: int
    order_number: str
    user_id: int
    address_id: int
    status: OrderStatus
    subtotal: str
    shipping_cost: str
    tax_amount: str
    discount: str
    total_amount: str
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    ordered_at: datetime
    confirmed_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemOut] = []
    address: Optional[AddressOut] = None
    payment: Optional[PaymentOut] = None


class CheckoutOut(CamelModel):
    order: OrderOut
    payment_required: bool = True


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int


class OrderListOut(CamelModel):
    orders: List[OrderOut]
    pagination: Pagination


class CancelOrderOut(CamelModel):
    order_id: int
    status: OrderStatus
    refund_status: Optional[str] = None


OrderSort = Literal["newest", "oldest"]
AdminOrderSort = Literal["newest", "oldest", "amount_high", "amount_low"]


# =====================================================
# payments
# =====================================================
class CreatePaymentIn(CamelModel):
    order_id: int = Field(..., gt=0)


class GatewayOrderOut(CamelModel):
    razorpay_order_id: str
    amount: str
    currency: str
    order_id: int
    order_number: str
    key_id: str


class VerifyPaymentIn(BaseModel):
    """Field names are the ones the Razorpay checkout hands back to the client."""

    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class VerifyPaymentOut(CamelModel):
    payment_id: int
    order_id: int
    order_number: str
    status: PaymentStatus
    amount: str


# =====================================================
# admin payment ledger
# =====================================================
class PayerOut(CamelModel):
    name: str
    email: str


class LedgerPaymentOut(CamelModel):
    id: int
    order_id: int
    order_number: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    amount: str
    currency: str
    status: PaymentStatus
    payment_method: Optional[str] = None
    card_network: Optional[str] = None
    card_last4: Optional[str] = None
    vpa: Optional[str] = None
    wallet_name: Optional[str] = None
    bank_name: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    user: Optional[PayerOut] = None


class PaymentSummary(CamelModel):
    total_successful: str
    total_failed: str
    total_pending: str
    total_refunded: str


class PaymentLedgerOut(CamelModel):
    payments: List[LedgerPaymentOut]
    pagination: Pagination
    summary: PaymentSummary
