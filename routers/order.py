from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from database.connection import get_db
from core.security import Principal
from routers.auth import require_customer
from schemas.order import OrderCreate, OrderResponse
from services.order import create_order, get_user_orders, get_user_order

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/")
def place_order(
    order_data: OrderCreate,
    principal: Principal = Depends(require_customer),
    db: Session = Depends(get_db)
):
    """Place an order from the checkout form."""
    order = create_order(db, principal, order_data)
    return {
        "success": True,
        "order": OrderResponse.from_order(order),
        "message": "Order created successfully"
    }

@router.get("/")
def list_my_orders(principal: Principal = Depends(require_customer), db: Session = Depends(get_db)):
    orders = get_user_orders(db, principal.id)
    return {"success": True, "orders": [OrderResponse.from_order(order) for order in orders]}

@router.get("/{order_ref}")
def get_my_order(order_ref: str, principal: Principal = Depends(require_customer), db: Session = Depends(get_db)):
    """A single order owned by the caller, by id or order number."""
    order = get_user_order(db, principal.id, order_ref)
    return {"success": True, "order": OrderResponse.from_order(order)}
