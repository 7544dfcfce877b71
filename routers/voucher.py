from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from database.connection import get_db
from core.security import Principal
from routers.auth import require_customer
from schemas.voucher import VoucherValidateRequest, VoucherUseRequest
from services.voucher import validate_voucher, record_voucher_usage

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/validate")
def validate_voucher_code(request: VoucherValidateRequest, db: Session = Depends(get_db)):
    """Check a code against a cart amount.

    Rule failures are reported in the body with a 200 so the storefront can
    show the message inline.
    """
    check = validate_voucher(db, request.code, request.order_amount)
    if not check.success:
        return {"success": False, "error": check.error}

    voucher = check.voucher
    return {
        "success": True,
        "voucher": {
            "id": voucher.id,
            "code": voucher.code,
            "name": voucher.name,
            "discount_type": voucher.type.value,
            "discount_value": float(voucher.value)
        },
        "discount_amount": float(check.discount_amount)
    }

@router.post("/use")
def use_voucher(
    request: VoucherUseRequest,
    principal: Principal = Depends(require_customer),
    db: Session = Depends(get_db)
):
    voucher = record_voucher_usage(db, request.voucher_id)
    logger.info(f"Voucher {voucher.code} used by {principal.id} (order {request.order_id})")
    return {
        "success": True,
        "message": "Voucher usage recorded",
        "used_count": voucher.used_count,
        "usage_limit": voucher.usage_limit
    }
