"""
Sales analytics for the back-office, derived on demand from the order
collection. All money figures are two-decimal strings.
"""

from collections import OrderedDict

from database import Database
from money import ZERO, format_amount, to_decimal


def sales_summary(db: Database) -> dict:
    orders = db.get_documents("order")
    total_sales = sum((to_decimal(o["total_price"]) for o in orders), ZERO)
    total_orders = len(orders)
    average = total_sales / total_orders if total_orders else ZERO
    return {
        "total_sales": format_amount(total_sales),
        "total_orders": total_orders,
        "average_order_value": format_amount(average),
        "total_products": db.count_documents("product"),
    }


def sales_trend(db: Database) -> list:
    """Sales and order count per UTC day, oldest day first."""
    by_date = {}
    for order in db.get_documents("order"):
        day = order["created_at"].date().isoformat()
        row = by_date.setdefault(day, {"date": day, "sales": ZERO, "orders": 0})
        row["sales"] += to_decimal(order["total_price"])
        row["orders"] += 1
    return [
        {**row, "sales": format_amount(row["sales"])}
        for _, row in sorted(by_date.items())
    ]


def _product_sales(db: Database) -> "OrderedDict[str, dict]":
    sales = OrderedDict()
    for order in db.get_documents("order"):
        row = sales.setdefault(order["product_id"], {"product_id": order["product_id"], "quantity": 0, "revenue": ZERO})
        row["quantity"] += order["quantity"]
        row["revenue"] += to_decimal(order["total_price"])
    return sales


def top_products(db: Database, limit: int = 10) -> list:
    ranked = sorted(_product_sales(db).values(), key=lambda r: r["revenue"], reverse=True)[:limit]
    result = []
    for row in ranked:
        product = db.get("product", row["product_id"]) or {}
        result.append({
            **row,
            "revenue": format_amount(row["revenue"]),
            "product_name": product.get("name", "Unknown"),
            "category": product.get("category", "Unknown"),
        })
    return result


def category_revenue(db: Database) -> list:
    revenue = OrderedDict()
    for order in db.get_documents("order"):
        product = db.get("product", order["product_id"])
        if product is None:
            continue
        revenue[product["category"]] = revenue.get(product["category"], ZERO) + to_decimal(order["total_price"])
    return [{"category": c, "revenue": format_amount(r)} for c, r in revenue.items()]
