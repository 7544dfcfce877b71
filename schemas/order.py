from pydantic import BaseModel, Field, validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from models.order import OrderStatus, PaymentStatus


class CheckoutModel(BaseModel):
    """Accepts both snake_case and the storefront's camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class OrderItemCreate(CheckoutModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

class OrderCreate(CheckoutModel):
    items: List[OrderItemCreate]
    shipping_address: str = Field(..., min_length=1)
    billing_address: Optional[str] = None
    payment_method: str = Field(..., min_length=1, max_length=50)
    shipping_cost: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    tax: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    subtotal: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    total: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    special_instructions: Optional[str] = Field(None, max_length=2000)
    voucher_code: Optional[str] = Field(None, max_length=50)

    @validator('items')
    def validate_items(cls, v):
        if not v:
            raise ValueError('Order must contain at least one item')
        return v

    @validator('shipping_address')
    def validate_shipping_address(cls, v):
        if not v.strip():
            raise ValueError('Shipping address is required')
        return v.strip()

class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100, alias="trackingNumber")

    class Config:
        populate_by_name = True

    @validator('status', pre=True)
    def normalize_status(cls, v):
        return v.upper() if isinstance(v, str) else v

class OrderProductSummary(BaseModel):
    id: str
    name: str
    image: Optional[str] = None

class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    price: float
    line_total: float
    product: Optional[OrderProductSummary] = None

class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: float
    shipping_cost: float
    tax: float
    discount_amount: float
    total: float
    voucher_code: Optional[str] = None
    shipping_address: str
    billing_address: Optional[str] = None
    payment_method: str
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        items = []
        for item in order.items:
            product = item.product
            items.append(OrderItemResponse(
                id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=float(item.price),
                line_total=float(item.price * item.quantity),
                product=OrderProductSummary(
                    id=product.id,
                    name=product.name,
                    image=product.primary_image
                ) if product else None
            ))

        return cls(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            status=order.status,
            payment_status=order.payment_status,
            subtotal=float(order.subtotal),
            shipping_cost=float(order.shipping_cost),
            tax=float(order.tax),
            discount_amount=float(order.discount_amount or 0),
            total=float(order.total),
            voucher_code=order.voucher.code if order.voucher else None,
            shipping_address=order.shipping_address,
            billing_address=order.billing_address,
            payment_method=order.payment_method,
            tracking_number=order.tracking_number,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=items
        )

class DashboardOrderResponse(OrderResponse):
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None

    @classmethod
    def from_order(cls, order) -> "DashboardOrderResponse":
        base = OrderResponse.from_order(order)
        user = order.user
        return cls(
            **base.model_dump(),
            customer_name=user.display_name if user else "Unknown Customer",
            customer_email=user.email if user else "",
            customer_phone=user.phone if user else None
        )
