from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as SchemaValidationError

import analytics
import reviews
from errors import ProductNotFound, ReviewNotFound


def _review(db, product_id, rating, author="Alice"):
    return reviews.create_review(db, product_id, rating, "Solid purchase, works well.", author)


def test_hidden_reviews_only_in_admin_listing(db, make_product):
    product = make_product()
    shown = _review(db, product["id"], 5)
    hidden = _review(db, product["id"], 1, "Bob")
    reviews.update_review(db, hidden["id"], {"visible": False})

    assert [r["id"] for r in reviews.list_product_reviews(db, product["id"])] == [shown["id"]]
    assert {r["id"] for r in reviews.list_all_reviews(db)} == {shown["id"], hidden["id"]}


def test_review_summary_uses_visible_reviews(db, make_product):
    product = make_product()
    for rating in (5, 4, 4):
        _review(db, product["id"], rating)
    hidden = _review(db, product["id"], 1)
    reviews.update_review(db, hidden["id"], {"visible": False})

    summary = reviews.review_summary(db, product["id"])
    assert summary == {"product_id": product["id"], "review_count": 3, "average_rating": 4.3}
    assert reviews.review_summary(db, "other")["average_rating"] is None


def test_review_validation(db, make_product):
    with pytest.raises(ProductNotFound):
        _review(db, "missing", 5)
    product = make_product()
    with pytest.raises(SchemaValidationError):
        _review(db, product["id"], 6)
    review = _review(db, product["id"], 3)
    with pytest.raises(SchemaValidationError):
        reviews.update_review(db, review["id"], {"rating": 0})
    with pytest.raises(ReviewNotFound):
        reviews.update_review(db, "missing", {"visible": False})
    reviews.delete_review(db, review["id"])
    with pytest.raises(ReviewNotFound):
        reviews.delete_review(db, review["id"])


def _order(db, product_id, total, quantity=1, day=1):
    return db.create_document("order", {
        "user_id": "u1",
        "product_id": product_id,
        "quantity": quantity,
        "unit_price": total,
        "total_price": total,
        "created_at": datetime(2026, 3, day, 12, 0, tzinfo=timezone.utc),
    })


def test_sales_summary_and_trend(db, make_product):
    tv = make_product("TV", "100.00", "TV")
    _order(db, tv["id"], "100.00", day=2)
    _order(db, tv["id"], "50.10", day=1)
    _order(db, tv["id"], "0.20", day=2)

    summary = analytics.sales_summary(db)
    assert summary == {
        "total_sales": "150.30",
        "total_orders": 3,
        "average_order_value": "50.10",
        "total_products": 1,
    }
    assert analytics.sales_trend(db) == [
        {"date": "2026-03-01", "sales": "50.10", "orders": 1},
        {"date": "2026-03-02", "sales": "100.20", "orders": 2},
    ]


def test_empty_analytics(db):
    assert analytics.sales_summary(db)["average_order_value"] == "0.00"
    assert analytics.sales_trend(db) == []
    assert analytics.top_products(db) == []
    assert analytics.category_revenue(db) == []


def test_top_products_and_category_revenue(db, make_product):
    tv = make_product("TV", "100.00", "TV")
    phone = make_product("Phone", "300.00", "Smartphone")
    buds = make_product("Buds", "20.00", "Smartphone")
    _order(db, tv["id"], "200.00", quantity=2)
    _order(db, phone["id"], "300.00")
    _order(db, buds["id"], "20.00")
    _order(db, buds["id"], "20.00")
    _order(db, "deleted-product", "999.00")

    top = analytics.top_products(db, limit=3)
    assert [row["product_name"] for row in top] == ["Unknown", "Phone", "TV"]
    assert top[2] == {
        "product_id": tv["id"],
        "quantity": 2,
        "revenue": "200.00",
        "product_name": "TV",
        "category": "TV",
    }
    assert analytics.category_revenue(db) == [
        {"category": "TV", "revenue": "200.00"},
        {"category": "Smartphone", "revenue": "340.00"},
    ]
