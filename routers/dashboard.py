from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from database.connection import get_db
from core.response import paginated_response, success_response
from core.security import Principal
from models.order import OrderStatus
from routers.auth import require_seller
from schemas.order import OrderStatusUpdate, DashboardOrderResponse
from schemas.voucher import VoucherCreate, VoucherUpdate, VoucherResponse
from services import voucher as voucher_service
from services.dashboard import get_dashboard_stats, get_order_summary
from services.order import list_seller_orders, get_seller_order, update_order_status

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/stats")
def dashboard_stats(principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    """Voucher, order, revenue and product counters for the seller"""
    return {"success": True, "stats": get_dashboard_stats(db, principal.id)}

# Vouchers

@router.get("/vouchers")
def list_vouchers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    vouchers, total = voucher_service.list_vouchers(db, principal.id, page=page, limit=limit)
    data = [VoucherResponse.from_orm(voucher).dict() for voucher in vouchers]
    return paginated_response("vouchers", data, page, limit, total)

@router.post("/vouchers", status_code=status.HTTP_201_CREATED)
def create_voucher(
    voucher_data: VoucherCreate,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    voucher = voucher_service.create_voucher(db, voucher_data, principal.id)
    return {
        "success": True,
        "message": "Voucher created successfully",
        "voucher": VoucherResponse.from_orm(voucher)
    }

@router.get("/vouchers/{voucher_id}")
def get_voucher(voucher_id: str, principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    voucher = voucher_service.get_seller_voucher(db, voucher_id, principal.id)
    return {"success": True, "voucher": VoucherResponse.from_orm(voucher)}

@router.put("/vouchers/{voucher_id}")
def update_voucher(
    voucher_id: str,
    voucher_data: VoucherUpdate,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    voucher = voucher_service.update_voucher(db, voucher_id, voucher_data, principal.id)
    return {
        "success": True,
        "message": "Voucher updated successfully",
        "voucher": VoucherResponse.from_orm(voucher)
    }

@router.delete("/vouchers/{voucher_id}")
def delete_voucher(voucher_id: str, principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    voucher_service.delete_voucher(db, voucher_id, principal.id)
    return success_response({"id": voucher_id}, "Voucher deleted successfully")

# Orders

@router.get("/orders")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(6, ge=1, le=100),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    """Orders containing the seller's products, newest first"""
    orders, total = list_seller_orders(db, principal, page=page, limit=limit, status=order_status)
    data = [DashboardOrderResponse.from_order(order).dict() for order in orders]
    return paginated_response("orders", data, page, limit, total)

@router.get("/orders/summary")
def orders_summary(principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    return {"success": True, **get_order_summary(db, principal.id)}

@router.get("/orders/{order_ref}")
def get_order(order_ref: str, principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    order = get_seller_order(db, principal, order_ref)
    return {"success": True, "order": DashboardOrderResponse.from_order(order)}

@router.patch("/orders/{order_ref}/update-status")
def change_order_status(
    order_ref: str,
    update: OrderStatusUpdate,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    order = update_order_status(db, principal, order_ref, update.status, update.tracking_number)
    return {
        "success": True,
        "message": f"Order status updated to {order.status.value}",
        "order": DashboardOrderResponse.from_order(order)
    }
