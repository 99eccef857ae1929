"""
Promotion resolver: percentage promo codes and single-use gift codes.

Promo codes are looked up case-insensitively and only while active. Gift
codes match exactly and credit the redeeming user's wallet once.
"""

import logging
import random
import string
import time

from database import Database, gift_code_key, user_key
from errors import (
    GiftCodeAlreadyUsed,
    GiftCodeNotFound,
    PromoCodeNotFound,
    ValidationError,
)
from money import format_amount, to_decimal
from schemas import GiftCode, GiftCodeRedemption, PromoCode
from wallet import adjust_balance, get_user

logger = logging.getLogger(__name__)

BASE36 = string.digits + string.ascii_uppercase
GIFT_CODE_PREFIX = "GFT"


# Promo codes

def resolve_promo_code(db: Database, code: str) -> dict:
    """Return the active promo code matching ``code``, ignoring case."""
    wanted = (code or "").strip().upper()
    promo = db.find_one("promo_code", lambda pc: pc["active"] and pc["code"].upper() == wanted) if wanted else None
    if promo is None:
        raise PromoCodeNotFound()
    return promo


def list_promo_codes(db: Database) -> list:
    return db.get_documents("promo_code")


def _promo_code_taken(db: Database, code: str, exclude_id: str = None) -> bool:
    return db.find_one(
        "promo_code", lambda pc: pc["code"].upper() == code.upper() and pc["id"] != exclude_id
    ) is not None


def create_promo_code(db: Database, code: str, discount: int) -> dict:
    promo = PromoCode(code=code.strip().upper(), discount=discount)
    with db.lock("promo_code"):
        if _promo_code_taken(db, promo.code):
            raise ValidationError("Promo code already exists")
        created = db.create_document("promo_code", promo.model_dump())
    logger.info("Promo code %s created (%s%% off)", created["code"], created["discount"])
    return created


def update_promo_code(db: Database, promo_id: str, updates: dict) -> dict:
    current = db.get("promo_code", promo_id)
    if current is None:
        raise PromoCodeNotFound("Promo code not found")
    merged = {**current, **{k: v for k, v in updates.items() if k in ("code", "discount", "active")}}
    promo = PromoCode(code=merged["code"].strip().upper(), discount=merged["discount"], active=merged["active"])
    with db.lock("promo_code"):
        if _promo_code_taken(db, promo.code, exclude_id=promo_id):
            raise ValidationError("Promo code already exists")
        return db.update_one("promo_code", promo_id, promo.model_dump())


def delete_promo_code(db: Database, promo_id: str) -> None:
    if not db.delete_one("promo_code", promo_id):
        raise PromoCodeNotFound("Promo code not found")


# Gift codes

def _to_base36(number: int) -> str:
    digits = ""
    while True:
        number, rem = divmod(number, 36)
        digits = BASE36[rem] + digits
        if number == 0:
            return digits


def make_gift_code() -> str:
    suffix = "".join(random.choices(BASE36, k=6))
    return f"{GIFT_CODE_PREFIX}{suffix}{_to_base36(int(time.time() * 1000))}"


def _positive_amount(amount) -> str:
    try:
        value = to_decimal(amount)
    except ValueError:
        raise ValidationError("Valid amount is required")
    if value <= 0:
        raise ValidationError("Valid amount is required")
    return format_amount(value)


def list_gift_codes(db: Database) -> list:
    return db.get_documents("gift_code")


def create_gift_code(db: Database, code: str, amount) -> dict:
    gift = GiftCode(code=code.strip(), amount=_positive_amount(amount))
    with db.lock("gift_code"):
        if db.find_one("gift_code", {"code": gift.code}):
            raise ValidationError("Gift code already exists")
        created = db.create_document("gift_code", gift.model_dump())
    logger.info("Gift code %s created for %s", created["code"], created["amount"])
    return created


def generate_gift_code(db: Database, amount, attempts: int = 5) -> dict:
    """Create a gift code with a server-generated, collision-checked code."""
    amount = _positive_amount(amount)
    for _ in range(attempts):
        try:
            return create_gift_code(db, make_gift_code(), amount)
        except ValidationError:
            logger.warning("Generated gift code collided, retrying")
    raise RuntimeError("Could not generate a unique gift code")


def update_gift_code(db: Database, gift_code_id: str, updates: dict) -> dict:
    changes = {}
    if "amount" in updates:
        changes["amount"] = _positive_amount(updates["amount"])
    if "active" in updates:
        if not isinstance(updates["active"], bool):
            raise ValidationError("Active must be true or false")
        changes["active"] = updates["active"]
    with db.lock(gift_code_key(gift_code_id)):
        updated = db.update_one("gift_code", gift_code_id, changes)
    if updated is None:
        raise GiftCodeNotFound("Gift code not found")
    return updated


def delete_gift_code(db: Database, gift_code_id: str) -> None:
    with db.lock(gift_code_key(gift_code_id)):
        deleted = db.delete_one("gift_code", gift_code_id)
    if not deleted:
        raise GiftCodeNotFound("Gift code not found")


def list_redemptions(db: Database) -> list:
    return db.get_documents("gift_code_redemption")


def redeem_gift_code(db: Database, code: str, user_id: str) -> dict:
    """
    Credit the gift code's amount to the user's wallet and retire the code.

    The credit, the deactivation and the redemption record happen under one
    lock scope for the code and the user; the active flag is re-read inside
    it so two concurrent redemptions cannot both succeed.
    """
    gift = db.find_one("gift_code", {"code": (code or "").strip()})
    if gift is None:
        raise GiftCodeNotFound()
    if not gift["active"]:
        raise GiftCodeAlreadyUsed()
    get_user(db, user_id)

    with db.lock(gift_code_key(gift["id"]), user_key(user_id)):
        gift = db.get("gift_code", gift["id"])
        if gift is None:
            raise GiftCodeNotFound()
        if not gift["active"]:
            raise GiftCodeAlreadyUsed()
        get_user(db, user_id)

        new_balance = adjust_balance(db, user_id, gift["amount"])
        gift = db.update_one("gift_code", gift["id"], {"active": False})
        redemption = db.create_document(
            "gift_code_redemption",
            GiftCodeRedemption(user_id=user_id, gift_code_id=gift["id"], amount=gift["amount"]).model_dump(),
        )

    logger.info("Gift code %s redeemed by %s for %s", gift["code"], user_id, gift["amount"])
    return {
        "amount_credited": gift["amount"],
        "new_balance": new_balance,
        "gift_code": gift,
        "redemption": redemption,
    }
