from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import Dict, Any, Optional

from core.config import settings
from models.order import Order, OrderItem, OrderStatus, PaymentStatus
from models.product import Product, ProductStatus
from models.voucher import Voucher, VoucherStatus
from services.order import seller_order_filter


def get_dashboard_stats(db: Session, seller_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Seller overview, recomputed from the source tables on every call.

    Revenue sums OrderItem.price for the seller's products in PAID orders,
    matching how the storefront reports it.
    """
    now = now or datetime.utcnow()

    total_vouchers = db.query(Voucher).filter(Voucher.seller_id == seller_id).count()
    active_vouchers = db.query(Voucher).filter(
        Voucher.seller_id == seller_id,
        Voucher.status == VoucherStatus.ACTIVE,
        Voucher.end_date > now
    ).count()

    seller_orders = db.query(Order).filter(seller_order_filter(seller_id))
    total_orders = seller_orders.count()
    pending_orders = seller_orders.filter(Order.status == OrderStatus.PENDING).count()

    total_revenue = db.query(func.coalesce(func.sum(OrderItem.price), 0)).join(
        Product, OrderItem.product_id == Product.id
    ).join(
        Order, OrderItem.order_id == Order.id
    ).filter(
        Product.seller_id == seller_id,
        Order.payment_status == PaymentStatus.PAID
    ).scalar()

    total_products = db.query(Product).filter(Product.seller_id == seller_id).count()
    active_products = db.query(Product).filter(
        Product.seller_id == seller_id,
        Product.status == ProductStatus.ACTIVE
    ).count()

    return {
        "vouchers": {"total": total_vouchers, "active": active_vouchers},
        "orders": {"total": total_orders, "pending": pending_orders},
        "revenue": {"total": float(total_revenue or 0), "currency": settings.CURRENCY},
        "products": {"total": total_products, "active": active_products}
    }


def get_order_summary(db: Session, seller_id: str, now: Optional[datetime] = None) -> Dict[str, int]:
    """Lightweight counts used by the dashboard's new-order badge."""
    now = now or datetime.utcnow()
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    seller_orders = db.query(Order).filter(seller_order_filter(seller_id))

    return {
        "total_orders": seller_orders.count(),
        "pending_count": seller_orders.filter(Order.status == OrderStatus.PENDING).count(),
        "today_new_orders": seller_orders.filter(Order.created_at >= start_of_today).count()
    }
