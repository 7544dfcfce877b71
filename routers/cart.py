from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.connection import get_db
from schemas.cart import CartSummaryRequest, WishlistSummaryRequest
from services import cart as cart_state
from services.voucher import validate_voucher

router = APIRouter()

@router.post("/summary")
def cart_summary(request: CartSummaryRequest, db: Session = Depends(get_db)):
    """Authoritative totals for a client-held cart.

    Lines are replayed through the cart transitions, so duplicate lines are
    merged and zero quantities dropped exactly as the client would.
    """
    state = cart_state.clear_cart()
    for line in request.items:
        item = cart_state.CartItem(
            id=line.id,
            name=line.name,
            price=line.price,
            image=line.image,
            material=line.material,
            category=line.category
        )
        existing = cart_state.find_item(state, line.id)
        quantity = line.quantity + (existing.quantity if existing else 0)
        state = cart_state.add_item(state, item)
        state = cart_state.update_quantity(state, line.id, quantity)

    voucher_error = None
    if request.voucher_code:
        check = validate_voucher(db, request.voucher_code, state.original_total)
        if check.success:
            state = cart_state.apply_voucher(state, cart_state.AppliedVoucher(
                id=check.voucher.id,
                code=check.voucher.code,
                discount_type=check.voucher.type.value,
                discount_value=check.voucher.value,
                discount_amount=check.discount_amount,
                max_discount=check.voucher.max_discount,
                min_order_amount=check.voucher.min_order_amount
            ))
        else:
            voucher_error = check.error

    return {
        "success": True,
        "cart": cart_state.cart_to_dict(state),
        "voucher_error": voucher_error
    }

@router.post("/wishlist/summary")
def wishlist_summary(request: WishlistSummaryRequest):
    """Normalized wishlist for a client-held list.

    Repeated ids keep the first entry; ids in removeIds are dropped afterwards.
    """
    state = cart_state.clear_wishlist()
    for line in request.items:
        state = cart_state.add_to_wishlist(state, cart_state.WishlistItem(
            id=line.id,
            name=line.name,
            price=line.price,
            image=line.image,
            material=line.material,
            category=line.category
        ))
    for item_id in request.remove_ids:
        state = cart_state.remove_from_wishlist(state, item_id)

    return {
        "success": True,
        "wishlist": cart_state.wishlist_to_dict(state)
    }
