"""
Checkout orchestrator.

A checkout attempt walks START -> VALIDATED -> PRICE_COMPUTED ->
BALANCE_CHECKED -> COMMITTED, or drops to REJECTED at any step. Every
check and every amount is settled before the first mutation; the commit
step then writes orders, debits the wallet and clears the cart, undoing
whatever it already did if a later write fails.
"""

import enum
import logging
from decimal import Decimal, ROUND_FLOOR
from typing import List, Optional

import cart
import promotions
import wallet
from database import Database, user_key
from errors import EmptyCart, InsufficientBalance, PromoCodeNotFound, StoreError
from money import CENT, ZERO, format_amount, round_cents, to_decimal
from schemas import Order

logger = logging.getLogger(__name__)


class CheckoutState(str, enum.Enum):
    START = "start"
    VALIDATED = "validated"
    PRICE_COMPUTED = "price_computed"
    BALANCE_CHECKED = "balance_checked"
    COMMITTED = "committed"
    REJECTED = "rejected"


def allocate_discount(line_totals: List[Decimal], discount: Decimal) -> List[Decimal]:
    """
    Split ``discount`` across lines in proportion to their totals.

    Every exact share is floored to cents, then the cents still missing go
    one each to the lines with the largest remainders (earlier lines win
    ties). Shares add up to ``discount`` and none exceeds its line total.
    """
    subtotal = sum(line_totals, ZERO)
    if not line_totals or discount == 0 or subtotal == 0:
        return [ZERO for _ in line_totals]
    exact = [discount * lt / subtotal for lt in line_totals]
    shares = [e.quantize(CENT, rounding=ROUND_FLOOR) for e in exact]
    missing = int((discount - sum(shares, ZERO)) / CENT)
    by_remainder = sorted(range(len(exact)), key=lambda i: exact[i] - shares[i], reverse=True)
    for i in by_remainder[:missing]:
        shares[i] += CENT
    return shares


class Checkout:
    def __init__(self, db: Database, user_id: str, promo_code: Optional[str] = None):
        self.db = db
        self.user_id = user_id
        self.promo_code = (promo_code or "").strip() or None
        self.state = CheckoutState.START

        self.user = None
        self.lines = []
        self.subtotal = ZERO
        self.discount = ZERO
        self.total = ZERO
        self.promo = None
        self.orders = []
        self.remaining_balance = None

    def _advance(self, state: CheckoutState):
        logger.debug("Checkout for %s: %s -> %s", self.user_id, self.state.value, state.value)
        self.state = state

    def validate(self):
        self.user = wallet.get_user(self.db, self.user_id)
        aggregated = cart.get_cart_with_totals(self.db, self.user_id)
        if not aggregated["lines"]:
            raise EmptyCart()
        self.lines = aggregated["lines"]
        self.subtotal = aggregated["subtotal"]
        self._advance(CheckoutState.VALIDATED)

    def compute_price(self):
        percent = 0
        if self.promo_code:
            try:
                self.promo = promotions.resolve_promo_code(self.db, self.promo_code)
                percent = self.promo["discount"]
            except PromoCodeNotFound:
                logger.warning("Checkout for %s ignoring unknown promo code %r", self.user_id, self.promo_code)
        self.discount = round_cents(self.subtotal * percent / 100)
        self.total = round_cents(self.subtotal - self.discount)
        self.subtotal = round_cents(self.subtotal)
        self._advance(CheckoutState.PRICE_COMPUTED)

    def check_balance(self):
        balance = to_decimal(self.user["wallet_balance"])
        if balance < self.total:
            raise InsufficientBalance(required=format_amount(self.total), available=format_amount(balance))
        self._advance(CheckoutState.BALANCE_CHECKED)

    def _planned_orders(self) -> List[dict]:
        line_totals = [line["line_total"] for line in self.lines]
        shares = allocate_discount(line_totals, self.discount)
        planned = []
        for line, line_total, share in zip(self.lines, line_totals, shares):
            planned.append(Order(
                user_id=self.user_id,
                product_id=line["product"]["id"],
                quantity=line["cart_item"]["quantity"],
                unit_price=format_amount(line["product"]["price"]),
                total_price=format_amount(line_total - share),
            ).model_dump())
        return planned

    def commit(self):
        planned = self._planned_orders()
        created = []
        debited = False
        try:
            for order in planned:
                created.append(self.db.create_document("order", order))
            self.remaining_balance = wallet.adjust_balance(self.db, self.user_id, -self.total)
            debited = True
            cart.clear_cart(self.db, self.user_id)
        except Exception:
            logger.exception("Checkout for %s failed while committing, rolling back", self.user_id)
            for order in created:
                self.db.delete_one("order", order["id"])
            if debited:
                wallet.adjust_balance(self.db, self.user_id, self.total)
            raise
        self.orders = created
        self._advance(CheckoutState.COMMITTED)

    def run(self) -> dict:
        try:
            with self.db.lock(user_key(self.user_id)):
                self.validate()
                self.compute_price()
                self.check_balance()
                self.commit()
        except StoreError as e:
            self._advance(CheckoutState.REJECTED)
            logger.warning("Checkout for %s rejected: %s", self.user_id, e.message)
            raise
        except Exception:
            self._advance(CheckoutState.REJECTED)
            raise

        logger.info(
            "Checkout for %s committed: %d order(s), total %s",
            self.user_id, len(self.orders), format_amount(self.total),
        )
        return self.summary()

    def summary(self) -> dict:
        return {
            "subtotal": format_amount(self.subtotal),
            "discount": format_amount(self.discount),
            "total": format_amount(self.total),
            "remaining_balance": self.remaining_balance,
            "promo_code": self.promo["code"] if self.promo else None,
            "promo_applied": self.promo is not None,
            "orders": self.orders,
        }


def checkout(db: Database, user_id: str, promo_code: Optional[str] = None) -> dict:
    return Checkout(db, user_id, promo_code).run()
