"""
Customer reviews and their moderation.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from database import Database
from errors import ProductNotFound, ReviewNotFound
from money import to_decimal
from schemas import Review

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("visible", "rating", "comment", "author_name")


def _newest_first(reviews: list) -> list:
    return sorted(reviews, key=lambda r: r["created_at"], reverse=True)


def list_product_reviews(db: Database, product_id: str) -> list:
    """Public listing: visible reviews only."""
    return _newest_first(db.get_documents("review", {"product_id": product_id, "visible": True}))


def list_all_reviews(db: Database) -> list:
    return _newest_first(db.get_documents("review"))


def create_review(db: Database, product_id: str, rating: int, comment: str, author_name: str) -> dict:
    if db.get("product", product_id) is None:
        raise ProductNotFound()
    review = Review(product_id=product_id, rating=rating, comment=comment, author_name=author_name)
    return db.create_document("review", review.model_dump())


def update_review(db: Database, review_id: str, updates: dict) -> dict:
    current = db.get("review", review_id)
    if current is None:
        raise ReviewNotFound()
    changes = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
    # re-validate the merged document so moderation cannot store a bad rating
    merged = Review(**{**current, **changes}).model_dump()
    updated = db.update_one("review", review_id, {k: merged[k] for k in changes})
    if "visible" in changes:
        logger.info("Review %s visibility set to %s", review_id, updated["visible"])
    return updated


def delete_review(db: Database, review_id: str) -> None:
    if not db.delete_one("review", review_id):
        raise ReviewNotFound()


def review_summary(db: Database, product_id: str) -> dict:
    ratings = [r["rating"] for r in db.get_documents("review", {"product_id": product_id, "visible": True})]
    average = None
    if ratings:
        average = float((to_decimal(sum(ratings)) / len(ratings)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    return {"product_id": product_id, "review_count": len(ratings), "average_rating": average}
