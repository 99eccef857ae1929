import threading
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

import cart
import promotions
import wallet
from checkout import Checkout, CheckoutState, allocate_discount, checkout
from errors import EmptyCart, InsufficientBalance, UserNotFound
from schemas import GiftCode, Order, User


def test_checkout_with_promo_matches_worked_example(db, make_product, make_user, save20):
    user = make_user("50000.00")
    product = make_product("Product A", "30000.00")
    cart.add_to_cart(db, user["id"], product["id"], 1)

    summary = checkout(db, user["id"], "SAVE20")

    assert summary["subtotal"] == "30000.00"
    assert summary["discount"] == "6000.00"
    assert summary["total"] == "24000.00"
    assert summary["remaining_balance"] == "26000.00"
    assert summary["promo_code"] == "SAVE20" and summary["promo_applied"] is True
    assert cart.get_cart_items(db, user["id"]) == []
    orders = db.get_documents("order")
    assert len(orders) == 1
    assert orders[0]["total_price"] == "24000.00"
    assert orders[0]["unit_price"] == "30000.00"
    assert wallet.get_user(db, user["id"])["wallet_balance"] == "26000.00"


def test_insufficient_balance_changes_nothing(db, make_product, make_user):
    user = make_user("10000.00")
    product = make_product("Product A", "30000.00")
    item = cart.add_to_cart(db, user["id"], product["id"], 1)

    with pytest.raises(InsufficientBalance) as exc:
        checkout(db, user["id"])

    assert exc.value.required == "30000.00"
    assert exc.value.available == "10000.00"
    assert exc.value.extra == {"required": "30000.00", "available": "10000.00"}
    assert db.get_documents("order") == []
    assert cart.get_cart_items(db, user["id"]) == [item]
    assert wallet.get_user(db, user["id"])["wallet_balance"] == "10000.00"


def test_unknown_promo_code_is_a_no_op(db, make_product, make_user):
    user = make_user("100.00")
    cart.add_to_cart(db, user["id"], make_product(price="40.00")["id"], 2)

    summary = checkout(db, user["id"], "NOT-A-CODE")

    assert summary["discount"] == "0.00"
    assert summary["total"] == summary["subtotal"] == "80.00"
    assert summary["promo_applied"] is False and summary["promo_code"] is None
    assert summary["remaining_balance"] == "20.00"


def test_discount_is_rounded_once_half_up(db, make_product, make_user):
    user = make_user("100.00")
    cart.add_to_cart(db, user["id"], make_product("A", "0.05")["id"], 1)
    cart.add_to_cart(db, user["id"], make_product("B", "0.05")["id"], 1)
    cart.add_to_cart(db, user["id"], make_product("C", "0.15")["id"], 1)
    db.create_document("promo_code", {"code": "HALF", "discount": 50, "active": True})

    summary = checkout(db, user["id"], "half")

    # per-line rounding would give 0.03 + 0.03 + 0.08 = 0.14
    assert summary["subtotal"] == "0.25"
    assert summary["discount"] == "0.13"
    assert summary["total"] == "0.12"


def test_one_order_per_line_and_totals_add_up(db, make_product, make_user, save20):
    user = make_user("1000.00")
    a = make_product("A", "33.33")
    b = make_product("B", "10.00")
    cart.add_to_cart(db, user["id"], a["id"], 3)
    cart.add_to_cart(db, user["id"], b["id"], 1)

    summary = checkout(db, user["id"], "SAVE20")

    orders = {o["product_id"]: o for o in db.get_documents("order")}
    assert set(orders) == {a["id"], b["id"]}
    assert orders[a["id"]]["quantity"] == 3
    assert sum(Decimal(o["total_price"]) for o in orders.values()) == Decimal(summary["total"])
    assert summary["subtotal"] == "109.99"
    assert summary["discount"] == "22.00"
    assert summary["total"] == "87.99"


def test_order_price_is_frozen_at_checkout(db, make_product, make_user):
    user = make_user("500.00")
    product = make_product(price="100.00")
    cart.add_to_cart(db, user["id"], product["id"], 2)
    checkout(db, user["id"])

    db.update_one("product", product["id"], {"price": "999.00"})
    order = db.get_documents("order")[0]
    assert order["total_price"] == "200.00"
    assert order["unit_price"] == "100.00"


def test_rejections(db, make_product, make_user):
    with pytest.raises(UserNotFound):
        checkout(db, "nobody")

    user = make_user("100.00")
    with pytest.raises(EmptyCart):
        checkout(db, user["id"])

    # a cart holding only orphaned lines is empty too
    product = make_product()
    cart.add_to_cart(db, user["id"], product["id"])
    db.delete_one("product", product["id"])
    attempt = Checkout(db, user["id"])
    with pytest.raises(EmptyCart):
        attempt.run()
    assert attempt.state is CheckoutState.REJECTED


def test_state_walks_to_committed(db, make_product, make_user):
    user = make_user("100.00")
    cart.add_to_cart(db, user["id"], make_product(price="1.00")["id"])
    attempt = Checkout(db, user["id"])
    assert attempt.state is CheckoutState.START
    attempt.run()
    assert attempt.state is CheckoutState.COMMITTED


def test_failed_commit_rolls_back(db, make_product, make_user, monkeypatch):
    user = make_user("100.00")
    cart.add_to_cart(db, user["id"], make_product("A", "10.00")["id"])
    cart.add_to_cart(db, user["id"], make_product("B", "5.00")["id"])

    def broken_clear(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(cart, "clear_cart", broken_clear)
    attempt = Checkout(db, user["id"])
    with pytest.raises(RuntimeError):
        attempt.run()

    assert attempt.state is CheckoutState.REJECTED
    assert db.get_documents("order") == []
    assert wallet.get_user(db, user["id"])["wallet_balance"] == "100.00"
    assert len(cart.get_cart_items(db, user["id"])) == 2


def test_allocate_discount():
    assert allocate_discount([Decimal("100.00")], Decimal("20.00")) == [Decimal("20.00")]
    shares = allocate_discount([Decimal("1.00"), Decimal("1.00"), Decimal("1.00")], Decimal("0.10"))
    assert shares == [Decimal("0.04"), Decimal("0.03"), Decimal("0.03")]
    shares = allocate_discount([Decimal("0.01")] * 11, Decimal("0.04"))
    assert sum(shares) == Decimal("0.04")
    assert all(Decimal("0.00") <= s <= Decimal("0.01") for s in shares)
    assert allocate_discount([Decimal("5.00")], Decimal("0.00")) == [Decimal("0.00")]
    assert allocate_discount([], Decimal("1.00")) == []


def test_many_small_lines_never_produce_negative_orders(db, make_product, make_user):
    user = make_user("1.00")
    for n in range(11):
        cart.add_to_cart(db, user["id"], make_product(f"Cable {n}", "0.01")["id"])
    promotions.create_promo_code(db, "FORTY", 40)

    summary = checkout(db, user["id"], "FORTY")

    assert summary["subtotal"] == "0.11"
    assert summary["discount"] == "0.04"
    assert summary["total"] == "0.07"
    totals = [Decimal(o["total_price"]) for o in db.get_documents("order")]
    assert len(totals) == 11
    assert all(Decimal("0.00") <= t <= Decimal("0.01") for t in totals)
    assert sum(totals) == Decimal("0.07")


def test_concurrent_checkouts_cannot_overdraw(db, make_product, make_user):
    user = make_user("100.00")
    cart.add_to_cart(db, user["id"], make_product(price="60.00")["id"])
    barrier = threading.Barrier(2)
    outcomes = []

    def attempt():
        barrier.wait(timeout=5)
        try:
            checkout(db, user["id"])
            outcomes.append("ok")
        except (EmptyCart, InsufficientBalance):
            outcomes.append("rejected")

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(outcomes) == ["ok", "rejected"]
    assert wallet.get_user(db, user["id"])["wallet_balance"] == "40.00"
    assert len(db.get_documents("order")) == 1


def test_only_the_wallet_balance_may_be_negative():
    assert User(wallet_balance="-5.00").wallet_balance == "-5.00"
    with pytest.raises(SchemaValidationError):
        Order(user_id="u1", product_id="p1", quantity=1, unit_price="0.01", total_price="-0.03")
    with pytest.raises(SchemaValidationError):
        GiftCode(code="GIFT", amount="-10.00")
