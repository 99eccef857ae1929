"""
Cart aggregator: per-user cart lines and their priced view.
"""

import logging

from database import Database, user_key
from errors import CartItemNotFound, ProductNotFound, ValidationError
from money import ZERO, to_decimal
from schemas import CartItem

logger = logging.getLogger(__name__)


def _check_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Invalid quantity")


def get_cart_items(db: Database, user_id: str) -> list:
    return db.get_documents("cart_item", {"user_id": user_id})


def add_to_cart(db: Database, user_id: str, product_id: str, quantity: int = 1) -> dict:
    """Add a product to the cart, merging with the existing line for that product."""
    if not user_id or not user_id.strip():
        raise ValidationError("User ID is required")
    _check_quantity(quantity)
    if db.get("product", product_id) is None:
        raise ProductNotFound()

    with db.lock(user_key(user_id)):
        existing = db.find_one("cart_item", {"user_id": user_id, "product_id": product_id})
        if existing:
            return db.update_one("cart_item", existing["id"], {"quantity": existing["quantity"] + quantity})
        item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        return db.create_document("cart_item", item.model_dump())


def update_quantity(db: Database, item_id: str, quantity: int) -> dict:
    _check_quantity(quantity)
    item = db.get("cart_item", item_id)
    if item is None:
        raise CartItemNotFound()
    with db.lock(user_key(item["user_id"])):
        updated = db.update_one("cart_item", item_id, {"quantity": quantity})
    if updated is None:
        raise CartItemNotFound()
    return updated


def remove_item(db: Database, item_id: str) -> None:
    item = db.get("cart_item", item_id)
    if item is None:
        raise CartItemNotFound()
    with db.lock(user_key(item["user_id"])):
        removed = db.delete_one("cart_item", item_id)
    if not removed:
        raise CartItemNotFound()


def clear_cart(db: Database, user_id: str) -> int:
    with db.lock(user_key(user_id)):
        return db.delete_many("cart_item", {"user_id": user_id})


def get_cart_with_totals(db: Database, user_id: str) -> dict:
    """
    Join the user's cart lines with their products.

    Returns ``{"lines": [{"cart_item", "product", "line_total"}], "subtotal"}``
    with Decimal amounts. Lines whose product no longer exists are dropped.
    """
    lines = []
    subtotal = ZERO
    for item in get_cart_items(db, user_id):
        product = db.get("product", item["product_id"])
        if product is None:
            logger.debug("Skipping orphaned cart item %s (product %s)", item["id"], item["product_id"])
            continue
        line_total = to_decimal(product["price"]) * item["quantity"]
        subtotal += line_total
        lines.append({"cart_item": item, "product": product, "line_total": line_total})
    return {"lines": lines, "subtotal": subtotal}
