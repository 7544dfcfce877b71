from sqlalchemy.orm import Session, selectinload
from sqlalchemy import update, or_
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple
import logging
import secrets

from core.config import settings
from core.exceptions import BaseCustomException, BusinessLogicError, ResourceNotFoundError
from core.security import Principal
from models.order import Order, OrderItem, OrderStatus, PaymentStatus
from models.product import Product, ProductStatus
from models.user import User, UserRole
from schemas.order import OrderCreate
from services import notification
from services.voucher import validate_voucher, claim_voucher_usage

logger = logging.getLogger(__name__)

ITEMS_UNAVAILABLE = (
    "One or more items in your cart are no longer available. "
    "Please review your cart and try again."
)

# Forward-only progression; CANCELLED is reachable from any non-terminal state.
STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def allowed_transitions(current: OrderStatus) -> List[OrderStatus]:
    if current in TERMINAL_STATUSES:
        return [current]
    position = STATUS_FLOW.index(current)
    return STATUS_FLOW[position:] + [OrderStatus.CANCELLED]


def can_transition(current: OrderStatus, new_status: OrderStatus) -> bool:
    return new_status in allowed_transitions(current)


def generate_order_number(created_at: Optional[datetime] = None) -> str:
    """Stable human-readable reference, e.g. ORD-20261019-4F2A9C."""
    created_at = created_at or datetime.utcnow()
    return f"ORD-{created_at:%Y%m%d}-{secrets.token_hex(3).upper()}"


def _unique_order_number(db: Session) -> str:
    for _ in range(5):
        order_number = generate_order_number()
        if not db.query(Order.id).filter(Order.order_number == order_number).first():
            return order_number
    raise RuntimeError("Could not allocate a unique order number")


def _order_query(db: Session):
    return db.query(Order).options(
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.user),
        selectinload(Order.voucher)
    )


def _requested_quantities(order_data: OrderCreate) -> "OrderedDict[str, int]":
    quantities = OrderedDict()
    for item in order_data.items:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return quantities


def _insufficient_stock(product: Product) -> BusinessLogicError:
    return BusinessLogicError(
        f"Insufficient stock for {product.name}. Available: {product.stock}",
        details={"product_id": product.id, "available": product.stock}
    )


def create_order(db: Session, principal: Principal, order_data: OrderCreate) -> Order:
    """Persist an order, its items, stock decrements and voucher usage atomically.

    Emails go out after the commit and never affect the result.
    """
    user = db.query(User).filter(User.id == principal.id).first()
    if not user:
        user = db.query(User).filter(User.email == principal.email.lower()).first()
    if not user:
        raise BusinessLogicError("Your session is stale. Please sign in again.")

    quantities = _requested_quantities(order_data)
    products = db.query(Product).filter(Product.id.in_(list(quantities.keys()))).all()
    product_map = {product.id: product for product in products}

    for product_id in quantities:
        product = product_map.get(product_id)
        if product is None or product.status in (ProductStatus.INACTIVE, ProductStatus.DISCONTINUED):
            raise BusinessLogicError(ITEMS_UNAVAILABLE, details={"product_id": product_id})

    for product_id, quantity in quantities.items():
        product = product_map[product_id]
        if product.stock < quantity:
            raise _insufficient_stock(product)

    voucher_check = None
    if order_data.voucher_code:
        voucher_check = validate_voucher(db, order_data.voucher_code, order_data.subtotal)
        if not voucher_check.success:
            raise BusinessLogicError(voucher_check.error, details={"code": order_data.voucher_code})

    discount_amount = voucher_check.discount_amount if voucher_check else Decimal("0")
    expected_total = order_data.subtotal - discount_amount + order_data.shipping_cost + order_data.tax
    if order_data.total != expected_total:
        # stored as submitted
        logger.warning(
            f"Order total mismatch for user {user.id}: client sent {order_data.total}, "
            f"expected {expected_total} (subtotal {order_data.subtotal}, discount {discount_amount}, "
            f"shipping {order_data.shipping_cost}, tax {order_data.tax})"
        )

    try:
        order = Order(
            order_number=_unique_order_number(db),
            user_id=user.id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            subtotal=order_data.subtotal,
            shipping_cost=order_data.shipping_cost,
            tax=order_data.tax,
            total=order_data.total,
            discount_amount=discount_amount,
            voucher_id=voucher_check.voucher.id if voucher_check else None,
            shipping_address=order_data.shipping_address,
            billing_address=order_data.billing_address,
            payment_method=order_data.payment_method,
            notes=order_data.special_instructions
        )
        db.add(order)
        db.flush()

        for item in order_data.items:
            db.add(OrderItem(
                order_id=order.id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price
            ))

            # Conditional decrement: a concurrent checkout that already took
            # the stock leaves this row untouched.
            result = db.execute(
                update(Product)
                .where(Product.id == item.product_id, Product.stock >= item.quantity)
                .values(stock=Product.stock - item.quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                product = product_map[item.product_id]
                db.refresh(product)
                raise _insufficient_stock(product)

        if voucher_check and not claim_voucher_usage(db, voucher_check.voucher.id):
            raise BusinessLogicError("Voucher usage limit reached", details={"code": order_data.voucher_code})

        db.commit()

    except BaseCustomException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating order for user {user.id}: {str(e)}")
        raise

    # Stock and usage counters were updated with SQL expressions
    db.expire_all()
    order = get_order_by_id(db, order.id)
    logger.info(f"Order created: {order.order_number} ({order.id}) for user {user.id}")

    customer_name = user.display_name
    notification.send_customer_order_confirmation(order, user.email, customer_name)
    notification.send_seller_order_notification(order, user.email, customer_name)

    return order


def get_order_by_id(db: Session, order_id: str) -> Optional[Order]:
    return _order_query(db).filter(Order.id == order_id).first()


def find_order(db: Session, order_ref: str) -> Optional[Order]:
    """Look an order up by primary key or by its order number."""
    return _order_query(db).filter(
        or_(Order.id == order_ref, Order.order_number == order_ref.upper())
    ).first()


def get_user_orders(db: Session, user_id: str) -> List[Order]:
    return _order_query(db).filter(Order.user_id == user_id).order_by(Order.created_at.desc()).all()


def get_user_order(db: Session, user_id: str, order_ref: str) -> Order:
    order = find_order(db, order_ref)
    if not order or order.user_id != user_id:
        raise ResourceNotFoundError("Order", order_ref)
    return order


def seller_order_filter(seller_id: str):
    """Orders that contain at least one of the seller's products."""
    return Order.items.any(OrderItem.product.has(Product.seller_id == seller_id))


def list_seller_orders(
    db: Session,
    principal: Principal,
    page: int = 1,
    limit: int = 6,
    status: Optional[OrderStatus] = None
) -> Tuple[List[Order], int]:
    query = _order_query(db)
    if principal.role != UserRole.ADMIN:
        query = query.filter(seller_order_filter(principal.id))
    if status:
        query = query.filter(Order.status == status)

    total = query.count()
    orders = query.order_by(Order.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return orders, total


def get_seller_order(db: Session, principal: Principal, order_ref: str) -> Order:
    order = find_order(db, order_ref)
    if not order:
        raise ResourceNotFoundError("Order", order_ref)
    if principal.role != UserRole.ADMIN and not any(
        item.product and item.product.seller_id == principal.id for item in order.items
    ):
        raise ResourceNotFoundError("Order", order_ref)
    return order


def update_order_status(
    db: Session,
    principal: Principal,
    order_ref: str,
    new_status: OrderStatus,
    tracking_number: Optional[str] = None
) -> Order:
    order = get_seller_order(db, principal, order_ref)
    previous_status = order.status

    if settings.ENFORCE_STATUS_TRANSITIONS and not can_transition(previous_status, new_status):
        allowed = ", ".join(status.value for status in allowed_transitions(previous_status))
        raise BusinessLogicError(
            f"Cannot change order status from {previous_status.value} to {new_status.value}",
            details={"allowed": allowed}
        )

    try:
        order.status = new_status
        if tracking_number:
            order.tracking_number = tracking_number
        order.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(order)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating order status for {order.id}: {str(e)}")
        raise

    logger.info(
        f"Order {order.order_number} status {previous_status.value} -> {new_status.value} "
        f"by seller {principal.id}"
    )

    user = order.user
    notification.send_order_status_update(
        order,
        new_status.value,
        user.email if user else None,
        user.display_name if user else None,
        tracking_number=order.tracking_number
    )

    return order
