"""Tests for services.cart and the cart summary endpoint."""

from decimal import Decimal

from services.cart import (
    AppliedVoucher,
    CartItem,
    CartState,
    WishlistItem,
    WishlistState,
    add_item,
    add_to_wishlist,
    apply_voucher,
    cart_to_dict,
    clear_cart,
    clear_wishlist,
    find_item,
    is_in_wishlist,
    remove_from_wishlist,
    remove_item,
    remove_voucher,
    update_quantity,
    wishlist_to_dict,
)
from conftest import make_voucher


RING = CartItem(id="ring", name="Sapphire Ring", price=Decimal("2499.99"))
CHAIN = CartItem(id="chain", name="Gold Chain", price=Decimal("80.50"))


def voucher(amount):
    return AppliedVoucher(
        id="v1",
        code="SAVE",
        discount_type="FIXED",
        discount_value=Decimal(amount),
        discount_amount=Decimal(amount),
    )


class TestCartItems:
    def test_add_new_item_starts_at_quantity_one(self):
        state = add_item(CartState(), CartItem(id="ring", name="Ring", price=Decimal("10"), quantity=7))
        assert find_item(state, "ring").quantity == 1
        assert state.item_count == 1
        assert state.total == Decimal("10")

    def test_add_existing_item_increments(self):
        state = add_item(add_item(CartState(), RING), RING)
        assert len(state.items) == 1
        assert state.item_count == 2
        assert state.original_total == Decimal("4999.98")

    def test_totals_across_lines(self):
        state = add_item(add_item(CartState(), RING), CHAIN)
        state = update_quantity(state, "chain", 3)
        assert state.item_count == 4
        assert state.original_total == Decimal("2741.49")
        assert state.total == state.original_total

    def test_update_quantity_zero_removes_line(self):
        state = update_quantity(add_item(CartState(), RING), "ring", 0)
        assert state.items == ()
        assert state.item_count == 0
        assert state.total == Decimal("0")

    def test_negative_quantity_clamped(self):
        state = update_quantity(add_item(CartState(), RING), "ring", -3)
        assert find_item(state, "ring") is None

    def test_remove_item(self):
        state = add_item(add_item(CartState(), RING), CHAIN)
        state = remove_item(state, "ring")
        assert [item.id for item in state.items] == ["chain"]
        assert state.original_total == Decimal("80.50")

    def test_transitions_do_not_mutate_input(self):
        before = add_item(CartState(), RING)
        add_item(before, CHAIN)
        assert before.item_count == 1

    def test_clear_cart(self):
        assert clear_cart() == CartState()


class TestCartVoucher:
    def test_apply_voucher_discounts_total(self):
        state = apply_voucher(add_item(CartState(), RING), voucher("250.00"))
        assert state.total == Decimal("2249.99")
        assert state.original_total == Decimal("2499.99")

    def test_new_voucher_replaces_previous(self):
        state = apply_voucher(add_item(CartState(), RING), voucher("100"))
        state = apply_voucher(state, voucher("5"))
        assert state.applied_voucher.discount_amount == Decimal("5")
        assert state.total == Decimal("2494.99")

    def test_total_never_negative(self):
        state = apply_voucher(add_item(CartState(), CHAIN), voucher("500"))
        assert state.total == Decimal("0")

    def test_remove_voucher_restores_total(self):
        state = apply_voucher(add_item(CartState(), RING), voucher("250"))
        state = remove_voucher(state)
        assert state.applied_voucher is None
        assert state.total == state.original_total

    def test_discount_recomputed_after_item_changes(self):
        ten_percent = AppliedVoucher(
            id="v1",
            code="SAVE10",
            discount_type="PERCENTAGE",
            discount_value=Decimal("10"),
        )
        state = apply_voucher(add_item(CartState(), RING), ten_percent)
        assert state.applied_voucher.discount_amount == Decimal("250.00")

        state = remove_item(add_item(state, CHAIN), "ring")
        assert state.original_total == Decimal("80.50")
        assert state.applied_voucher.discount_amount == Decimal("8.05")
        assert state.total == Decimal("72.45")

    def test_percentage_discount_capped_on_growth(self):
        capped = AppliedVoucher(
            id="v1",
            code="CAP50",
            discount_type="PERCENTAGE",
            discount_value=Decimal("10"),
            max_discount=Decimal("50"),
        )
        state = apply_voucher(add_item(CartState(), CHAIN), capped)
        assert state.applied_voucher.discount_amount == Decimal("8.05")
        state = add_item(state, RING)
        assert state.applied_voucher.discount_amount == Decimal("50.00")

    def test_voucher_dropped_below_minimum(self):
        minimum = AppliedVoucher(
            id="v1",
            code="BIG",
            discount_type="FIXED",
            discount_value=Decimal("100"),
            min_order_amount=Decimal("1000"),
        )
        state = apply_voucher(add_item(add_item(CartState(), RING), CHAIN), minimum)
        assert state.total == Decimal("2480.49")

        state = remove_item(state, "ring")
        assert state.applied_voucher is None
        assert state.total == Decimal("80.50")

    def test_cart_to_dict(self):
        state = apply_voucher(add_item(CartState(), CHAIN), voucher("0.50"))
        data = cart_to_dict(state)
        assert data["items"][0]["line_total"] == 80.5
        assert data["total"] == 80.0
        assert data["applied_voucher"]["code"] == "SAVE"


class TestWishlist:
    def test_add_is_idempotent(self):
        item = WishlistItem(id="ring", name="Ring", price=Decimal("10"))
        state = add_to_wishlist(add_to_wishlist(WishlistState(), item), item)
        assert state.item_count == 1
        assert is_in_wishlist(state, "ring")

    def test_remove_and_clear(self):
        ring = WishlistItem(id="ring", name="Ring", price=Decimal("10"))
        chain = WishlistItem(id="chain", name="Chain", price=Decimal("20"))
        state = add_to_wishlist(add_to_wishlist(WishlistState(), ring), chain)
        state = remove_from_wishlist(state, "ring")
        assert not is_in_wishlist(state, "ring")
        assert state.item_count == 1
        assert clear_wishlist().item_count == 0

    def test_wishlist_to_dict(self):
        item = WishlistItem(id="ring", name="Ring", price=Decimal("10.50"), image="ring.jpg")
        data = wishlist_to_dict(add_to_wishlist(WishlistState(), item))
        assert data["item_count"] == 1
        assert data["items"][0]["price"] == 10.5
        assert data["items"][0]["image"] == "ring.jpg"


class TestCartSummaryEndpoint:
    def test_merges_lines_and_applies_voucher(self, client, db, seller):
        make_voucher(db, seller, code="SAVE10")
        resp = client.post("/api/cart/summary", json={
            "items": [
                {"id": "ring", "name": "Sapphire Ring", "price": "2499.99", "quantity": 1},
            ],
            "voucherCode": "save10",
        })
        assert resp.status_code == 200
        cart = resp.json()["cart"]
        assert cart["original_total"] == 2499.99
        assert cart["applied_voucher"]["discount_amount"] == 250.0
        assert cart["total"] == 2249.99
        assert resp.json()["voucher_error"] is None

    def test_duplicate_lines_are_summed(self, client):
        resp = client.post("/api/cart/summary", json={"items": [
            {"id": "chain", "name": "Gold Chain", "price": "80.50", "quantity": 2},
            {"id": "chain", "name": "Gold Chain", "price": "80.50", "quantity": 1},
            {"id": "ring", "name": "Ring", "price": "10.00", "quantity": 0},
        ]})
        cart = resp.json()["cart"]
        assert len(cart["items"]) == 1
        assert cart["item_count"] == 3

    def test_invalid_voucher_reported(self, client):
        resp = client.post("/api/cart/summary", json={
            "items": [{"id": "chain", "name": "Gold Chain", "price": "80.50", "quantity": 1}],
            "voucher_code": "NOPE",
        })
        body = resp.json()
        assert body["voucher_error"] == "Invalid or expired voucher code"
        assert body["cart"]["applied_voucher"] is None
        assert body["cart"]["total"] == 80.5


class TestWishlistSummaryEndpoint:
    def test_duplicates_collapse(self, client):
        resp = client.post("/api/cart/wishlist/summary", json={"items": [
            {"id": "ring", "name": "Sapphire Ring", "price": "2499.99"},
            {"id": "chain", "name": "Gold Chain", "price": "80.50", "material": "Gold"},
            {"id": "ring", "name": "Sapphire Ring (again)", "price": "2499.99"},
        ]})
        assert resp.status_code == 200
        wishlist = resp.json()["wishlist"]
        assert wishlist["item_count"] == 2
        assert [item["id"] for item in wishlist["items"]] == ["ring", "chain"]
        assert wishlist["items"][0]["name"] == "Sapphire Ring"
        assert wishlist["items"][1]["material"] == "Gold"

    def test_empty(self, client):
        resp = client.post("/api/cart/wishlist/summary", json={})
        assert resp.json()["wishlist"] == {"items": [], "item_count": 0}

    def test_negative_price_rejected(self, client):
        resp = client.post("/api/cart/wishlist/summary", json={"items": [
            {"id": "ring", "name": "Ring", "price": "-1"},
        ]})
        assert resp.status_code == 400

    def test_remove_ids_applied_after_lines(self, client):
        resp = client.post("/api/cart/wishlist/summary", json={
            "items": [
                {"id": "ring", "name": "Sapphire Ring", "price": "2499.99"},
                {"id": "chain", "name": "Gold Chain", "price": "80.50"},
            ],
            "removeIds": ["ring", "missing"],
        })
        wishlist = resp.json()["wishlist"]
        assert wishlist["item_count"] == 1
        assert wishlist["items"][0]["id"] == "chain"
