from sqlalchemy.orm import Session
from sqlalchemy import update, func
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from core.config import settings
from core.exceptions import BusinessLogicError, ResourceNotFoundError, ValidationError
from models.voucher import Voucher, VoucherType, VoucherStatus
from models.order import Order
from schemas.voucher import VoucherCreate, VoucherUpdate
from services.pricing import compute_discount, round_money

logger = logging.getLogger(__name__)

INVALID_VOUCHER = "Invalid or expired voucher code"
USAGE_LIMIT_REACHED = "Voucher usage limit reached"


@dataclass
class VoucherCheck:
    """Outcome of validating a code against an order amount."""
    success: bool
    voucher: Optional[Voucher] = None
    discount_amount: Decimal = Decimal("0.00")
    error: Optional[str] = None


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def calculate_discount(voucher: Voucher, order_amount: Decimal) -> Decimal:
    return compute_discount(voucher.type, voucher.value, order_amount, voucher.max_discount)


def find_active_voucher(db: Session, code: str, now: Optional[datetime] = None) -> Optional[Voucher]:
    now = to_naive_utc(now) if now else datetime.utcnow()
    return db.query(Voucher).filter(
        Voucher.code == code.strip().upper(),
        Voucher.status == VoucherStatus.ACTIVE,
        Voucher.start_date <= now,
        Voucher.end_date >= now
    ).first()


def validate_voucher(db: Session, code: str, order_amount: Decimal, now: Optional[datetime] = None) -> VoucherCheck:
    """Check a code against an order amount; the first failing rule wins.

    Never changes used_count.
    """
    voucher = find_active_voucher(db, code, now) if code and code.strip() else None
    if voucher is None:
        return VoucherCheck(success=False, error=INVALID_VOUCHER)

    if voucher.used_count >= voucher.usage_limit:
        return VoucherCheck(success=False, voucher=voucher, error=USAGE_LIMIT_REACHED)

    if Decimal(order_amount) < voucher.min_order_amount:
        return VoucherCheck(
            success=False,
            voucher=voucher,
            error=f"Minimum order amount of {settings.CURRENCY} {round_money(voucher.min_order_amount)} required"
        )

    return VoucherCheck(
        success=True,
        voucher=voucher,
        discount_amount=calculate_discount(voucher, order_amount)
    )


def claim_voucher_usage(db: Session, voucher_id: str) -> bool:
    """Increment used_count only while it is below usage_limit.

    Runs inside the caller's transaction and does not commit. Returns False
    when the voucher is missing or already exhausted.
    """
    result = db.execute(
        update(Voucher)
        .where(Voucher.id == voucher_id, Voucher.used_count < Voucher.usage_limit)
        .values(used_count=Voucher.used_count + 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def record_voucher_usage(db: Session, voucher_id: str) -> Voucher:
    """Standalone usage recording for a voucher applied outside checkout."""
    voucher = db.query(Voucher).filter(Voucher.id == voucher_id).first()
    if not voucher:
        raise ResourceNotFoundError("Voucher", voucher_id)

    try:
        if not claim_voucher_usage(db, voucher_id):
            raise BusinessLogicError(USAGE_LIMIT_REACHED, details={"voucher_id": voucher_id})
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(voucher)
    logger.info(f"Voucher usage recorded: {voucher.code} ({voucher.used_count}/{voucher.usage_limit})")
    return voucher


# Seller voucher management

def list_vouchers(db: Session, seller_id: str, page: int = 1, limit: int = 10) -> Tuple[List[Voucher], int]:
    query = db.query(Voucher).filter(Voucher.seller_id == seller_id)
    total = query.count()
    vouchers = query.order_by(Voucher.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return vouchers, total


def get_seller_voucher(db: Session, voucher_id: str, seller_id: str) -> Voucher:
    voucher = db.query(Voucher).filter(
        Voucher.id == voucher_id,
        Voucher.seller_id == seller_id
    ).first()
    if not voucher:
        raise ResourceNotFoundError("Voucher", voucher_id)
    return voucher


def _ensure_code_available(db: Session, code: str, exclude_id: Optional[str] = None):
    query = db.query(Voucher).filter(func.upper(Voucher.code) == code.upper())
    if exclude_id:
        query = query.filter(Voucher.id != exclude_id)
    if query.first():
        raise BusinessLogicError("Voucher code already exists", details={"code": code})


def create_voucher(db: Session, voucher_data: VoucherCreate, seller_id: str) -> Voucher:
    _ensure_code_available(db, voucher_data.code)

    voucher = Voucher(
        seller_id=seller_id,
        code=voucher_data.code,
        name=voucher_data.name,
        description=voucher_data.description,
        type=voucher_data.type,
        value=voucher_data.value,
        min_order_amount=voucher_data.min_order_amount,
        max_discount=voucher_data.max_discount,
        usage_limit=voucher_data.usage_limit,
        used_count=0,
        status=VoucherStatus.ACTIVE,
        start_date=to_naive_utc(voucher_data.start_date),
        end_date=to_naive_utc(voucher_data.end_date)
    )

    try:
        db.add(voucher)
        db.commit()
        db.refresh(voucher)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating voucher: {str(e)}")
        raise

    logger.info(f"Voucher created: {voucher.code} by seller {seller_id}")
    return voucher


def update_voucher(db: Session, voucher_id: str, voucher_data: VoucherUpdate, seller_id: str) -> Voucher:
    voucher = get_seller_voucher(db, voucher_id, seller_id)
    changes = voucher_data.dict(exclude_unset=True)

    if changes.get("code") and changes["code"] != voucher.code:
        _ensure_code_available(db, changes["code"], exclude_id=voucher.id)

    for field in ("start_date", "end_date"):
        if field in changes:
            changes[field] = to_naive_utc(changes[field])

    start_date = changes.get("start_date", voucher.start_date)
    end_date = changes.get("end_date", voucher.end_date)
    if end_date <= start_date:
        raise ValidationError("end_date must be after start_date", field="end_date")

    voucher_type = changes.get("type", voucher.type)
    value = changes.get("value", voucher.value)
    if voucher_type == VoucherType.PERCENTAGE and value > 100:
        raise ValidationError("Percentage vouchers cannot exceed 100", field="value")

    usage_limit = changes.get("usage_limit", voucher.usage_limit)
    if usage_limit < voucher.used_count:
        raise BusinessLogicError(
            f"Usage limit cannot be lower than the current usage count ({voucher.used_count})"
        )

    try:
        for field, new_value in changes.items():
            setattr(voucher, field, new_value)
        db.commit()
        db.refresh(voucher)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating voucher: {str(e)}")
        raise

    logger.info(f"Voucher updated: {voucher.code} by seller {seller_id}")
    return voucher


def delete_voucher(db: Session, voucher_id: str, seller_id: str) -> None:
    voucher = get_seller_voucher(db, voucher_id, seller_id)

    if db.query(Order).filter(Order.voucher_id == voucher.id).count() > 0:
        raise BusinessLogicError(
            "Cannot delete a voucher that has been used on orders. Deactivate it instead."
        )

    try:
        db.delete(voucher)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting voucher: {str(e)}")
        raise

    logger.info(f"Voucher deleted: {voucher.code} by seller {seller_id}")
