"""
Wallet ledger: the only code that writes a user's wallet balance.
"""

import logging
from typing import Optional

from database import Database, user_key
from errors import UserNotFound
from money import format_amount, to_decimal
from schemas import User

logger = logging.getLogger(__name__)


def get_user(db: Database, user_id: str) -> dict:
    user = db.get("user", user_id) if user_id else None
    if user is None:
        raise UserNotFound()
    return user


def create_user(db: Database, initial_balance="0.00", user_id: Optional[str] = None) -> dict:
    data = User(wallet_balance=format_amount(initial_balance)).model_dump()
    if user_id:
        data["id"] = user_id
    return db.create_document("user", data)


def adjust_balance(db: Database, user_id: str, delta) -> str:
    """
    Apply a signed delta (credit > 0, debit < 0) and return the new balance.

    No floor is enforced here; callers that debit must check sufficiency
    first while holding the same user lock.
    """
    delta = to_decimal(delta)
    with db.lock(user_key(user_id)):
        user = get_user(db, user_id)
        new_balance = format_amount(to_decimal(user["wallet_balance"]) + delta)
        db.update_one("user", user_id, {"wallet_balance": new_balance})
    logger.info("Wallet %s adjusted by %s, balance now %s", user_id, format_amount(delta), new_balance)
    return new_balance
