"""
Cart and wishlist state containers.

Both are client-held and never persisted. Every operation is a pure
transition: it takes a snapshot and returns a new one, recomputing the
derived totals, so callers can replay a cart from any list of lines.
"""
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional, Tuple, Dict, Any

from services.pricing import compute_discount

ZERO = Decimal("0")


@dataclass(frozen=True)
class CartItem:
    id: str
    name: str
    price: Decimal
    quantity: int = 1
    image: str = ""
    material: str = ""
    category: str = ""


@dataclass(frozen=True)
class AppliedVoucher:
    """A validated voucher plus the rule fields needed to re-price the cart."""
    id: str
    code: str
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal = ZERO
    max_discount: Optional[Decimal] = None
    min_order_amount: Decimal = ZERO


@dataclass(frozen=True)
class CartState:
    items: Tuple[CartItem, ...] = ()
    total: Decimal = ZERO
    item_count: int = 0
    applied_voucher: Optional[AppliedVoucher] = None
    original_total: Decimal = ZERO


def _recalculate(state: CartState, items: Tuple[CartItem, ...]) -> CartState:
    original_total = sum((item.price * item.quantity for item in items), ZERO)
    item_count = sum(item.quantity for item in items)
    voucher = state.applied_voucher
    total = original_total
    if voucher is not None:
        if original_total < voucher.min_order_amount:
            # no longer eligible
            voucher = None
        else:
            discount = compute_discount(
                voucher.discount_type, voucher.discount_value, original_total, voucher.max_discount
            )
            voucher = replace(voucher, discount_amount=discount)
            total = max(original_total - discount, ZERO)

    return replace(
        state,
        applied_voucher=voucher,
        items=items,
        total=total,
        item_count=item_count,
        original_total=original_total
    )


def find_item(state: CartState, item_id: str) -> Optional[CartItem]:
    for item in state.items:
        if item.id == item_id:
            return item
    return None


def add_item(state: CartState, item: CartItem) -> CartState:
    """Insert a line with quantity 1, or bump an existing line by one."""
    if find_item(state, item.id) is not None:
        items = tuple(
            replace(existing, quantity=existing.quantity + 1) if existing.id == item.id else existing
            for existing in state.items
        )
    else:
        items = state.items + (replace(item, quantity=1),)
    return _recalculate(state, items)


def remove_item(state: CartState, item_id: str) -> CartState:
    items = tuple(item for item in state.items if item.id != item_id)
    return _recalculate(state, items)


def update_quantity(state: CartState, item_id: str, quantity: int) -> CartState:
    """Set a line's quantity; zero or less drops the line."""
    quantity = max(0, quantity)
    items = tuple(
        replace(item, quantity=quantity) if item.id == item_id else item
        for item in state.items
    )
    items = tuple(item for item in items if item.quantity > 0)
    return _recalculate(state, items)


def apply_voucher(state: CartState, voucher: AppliedVoucher) -> CartState:
    """Attach a voucher, replacing any voucher already applied."""
    return _recalculate(replace(state, applied_voucher=voucher), state.items)


def remove_voucher(state: CartState) -> CartState:
    return _recalculate(replace(state, applied_voucher=None), state.items)


def clear_cart() -> CartState:
    return CartState()


def cart_to_dict(state: CartState) -> Dict[str, Any]:
    voucher = state.applied_voucher
    return {
        "items": [
            {
                "id": item.id,
                "name": item.name,
                "price": float(item.price),
                "quantity": item.quantity,
                "image": item.image,
                "material": item.material,
                "category": item.category,
                "line_total": float(item.price * item.quantity)
            }
            for item in state.items
        ],
        "item_count": state.item_count,
        "original_total": float(state.original_total),
        "total": float(state.total),
        "applied_voucher": {
            "id": voucher.id,
            "code": voucher.code,
            "discount_type": voucher.discount_type,
            "discount_value": float(voucher.discount_value),
            "discount_amount": float(voucher.discount_amount)
        } if voucher else None
    }


# Wishlist

@dataclass(frozen=True)
class WishlistItem:
    id: str
    name: str
    price: Decimal
    image: str = ""
    material: str = ""
    category: str = ""


@dataclass(frozen=True)
class WishlistState:
    items: Tuple[WishlistItem, ...] = ()
    item_count: int = 0


def is_in_wishlist(state: WishlistState, item_id: str) -> bool:
    return any(item.id == item_id for item in state.items)


def add_to_wishlist(state: WishlistState, item: WishlistItem) -> WishlistState:
    if is_in_wishlist(state, item.id):
        return state
    items = state.items + (item,)
    return WishlistState(items=items, item_count=len(items))


def remove_from_wishlist(state: WishlistState, item_id: str) -> WishlistState:
    items = tuple(item for item in state.items if item.id != item_id)
    return WishlistState(items=items, item_count=len(items))


def clear_wishlist() -> WishlistState:
    return WishlistState()


def wishlist_to_dict(state: WishlistState) -> Dict[str, Any]:
    return {
        "items": [
            {
                "id": item.id,
                "name": item.name,
                "price": float(item.price),
                "image": item.image,
                "material": item.material,
                "category": item.category
            }
            for item in state.items
        ],
        "item_count": state.item_count
    }
