import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic import ValidationError as SchemaValidationError
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

import analytics
import auth
import cart
import config
import promotions
import reviews
import wallet
from checkout import checkout
from database import Database
from errors import StoreError
from money import format_amount
from schemas import ContactMessage
from seed import seed

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter()


# -----------------------------
# Helpers
# -----------------------------

def serialize_document(value):
    """Recursively rename snake_case keys to the camelCase the storefront client expects."""
    if isinstance(value, dict):
        return {to_camel(k): serialize_document(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize_document(v) for v in value]
    return value


def get_db(request: Request) -> Database:
    return request.app.state.db


def require_admin(request: Request, authorization: Optional[str] = Header(None)) -> dict:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return auth.admin_from_token(get_db(request), authorization[len("Bearer "):])


# -----------------------------
# Request models
# -----------------------------

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItemIn(CamelModel):
    user_id: str
    product_id: str
    quantity: int = Field(1, ge=1)


class QuantityUpdate(CamelModel):
    quantity: int = Field(..., ge=1)


class ContactIn(CamelModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    message: str = Field(..., min_length=10)


class ReviewIn(CamelModel):
    product_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10)
    author_name: str = Field(..., min_length=2)


class ReviewUpdate(CamelModel):
    visible: Optional[bool] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=10)
    author_name: Optional[str] = Field(None, min_length=2)


class PromoCodeValidate(CamelModel):
    code: Optional[str] = None


class PromoCodeIn(CamelModel):
    code: str = Field(..., min_length=3)
    discount: int = Field(..., ge=1, le=100)


class PromoCodeUpdate(CamelModel):
    code: Optional[str] = Field(None, min_length=3)
    discount: Optional[int] = Field(None, ge=1, le=100)
    active: Optional[bool] = None


class GiftCodeIn(CamelModel):
    code: str = Field(..., min_length=3)
    amount: Decimal = Field(..., gt=0)


class GiftCodeGenerate(CamelModel):
    amount: Decimal = Field(..., gt=0)


class GiftCodeUpdate(CamelModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    active: Optional[bool] = None


class RedeemRequest(CamelModel):
    code: Optional[str] = None
    user_id: Optional[str] = None


class CheckoutRequest(CamelModel):
    user_id: Optional[str] = None
    promo_code: Optional[str] = None


class AdminLoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


# -----------------------------
# Basic routes
# -----------------------------

@router.get("/")
def read_root():
    return {"message": "Electronix Store API running"}


@router.get("/test")
def test_database(db: Database = Depends(get_db)):
    return {
        "backend": "✅ Running",
        "database": "✅ In-memory",
        "database_name": db.name,
        "collections": {name: db.count_documents(name) for name in db.list_collection_names()},
    }


# -----------------------------
# Catalog
# -----------------------------

@router.get("/products")
def list_products(category: Optional[str] = None, featured: Optional[int] = None, db: Database = Depends(get_db)):
    filters = {}
    if category:
        filters["category"] = category
    if featured is not None:
        filters["featured"] = featured
    return serialize_document(db.get_documents("product", filters or None))


@router.get("/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    doc = db.get("product", product_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return serialize_document(doc)


# -----------------------------
# Cart
# -----------------------------

@router.get("/cart")
def get_cart(user_id: str = Query(config.GUEST_USER_ID, alias="userId"), db: Database = Depends(get_db)):
    view = cart.get_cart_with_totals(db, user_id)
    items = [
        {**line["cart_item"], "product": line["product"], "line_total": format_amount(line["line_total"])}
        for line in view["lines"]
    ]
    return serialize_document({"user_id": user_id, "items": items, "subtotal": format_amount(view["subtotal"])})


@router.post("/cart", status_code=201)
def add_to_cart(payload: CartItemIn, db: Database = Depends(get_db)):
    item = cart.add_to_cart(db, payload.user_id, payload.product_id, payload.quantity)
    return serialize_document(item)


@router.patch("/cart/{item_id}")
def update_cart_item(item_id: str, payload: QuantityUpdate, db: Database = Depends(get_db)):
    return serialize_document(cart.update_quantity(db, item_id, payload.quantity))


@router.delete("/cart/{item_id}", status_code=204)
def remove_cart_item(item_id: str, db: Database = Depends(get_db)):
    cart.remove_item(db, item_id)
    return Response(status_code=204)


@router.delete("/cart", status_code=204)
def clear_cart(user_id: str = Query(config.GUEST_USER_ID, alias="userId"), db: Database = Depends(get_db)):
    cart.clear_cart(db, user_id)
    return Response(status_code=204)


# -----------------------------
# Contact
# -----------------------------

@router.post("/contact", status_code=201)
def submit_contact(payload: ContactIn, db: Database = Depends(get_db)):
    msg = ContactMessage(**payload.model_dump())
    return serialize_document(db.create_document("contact_message", msg.model_dump()))


# -----------------------------
# Reviews
# -----------------------------

@router.get("/reviews/product/{product_id}")
def product_reviews(product_id: str, db: Database = Depends(get_db)):
    return serialize_document(reviews.list_product_reviews(db, product_id))


@router.get("/reviews/product/{product_id}/summary")
def product_review_summary(product_id: str, db: Database = Depends(get_db)):
    return serialize_document(reviews.review_summary(db, product_id))


@router.get("/reviews", dependencies=[Depends(require_admin)])
def all_reviews(db: Database = Depends(get_db)):
    return serialize_document(reviews.list_all_reviews(db))


@router.post("/reviews", status_code=201)
def create_review(payload: ReviewIn, db: Database = Depends(get_db)):
    review = reviews.create_review(db, payload.product_id, payload.rating, payload.comment, payload.author_name)
    return serialize_document(review)


@router.patch("/reviews/{review_id}", dependencies=[Depends(require_admin)])
def update_review(review_id: str, payload: ReviewUpdate, db: Database = Depends(get_db)):
    return serialize_document(reviews.update_review(db, review_id, payload.model_dump(exclude_unset=True)))


@router.delete("/reviews/{review_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_review(review_id: str, db: Database = Depends(get_db)):
    reviews.delete_review(db, review_id)
    return Response(status_code=204)


# -----------------------------
# Promo codes
# -----------------------------

@router.get("/promo-codes", dependencies=[Depends(require_admin)])
def list_promo_codes(db: Database = Depends(get_db)):
    return serialize_document(promotions.list_promo_codes(db))


@router.post("/promo-codes/validate")
def validate_promo_code(payload: PromoCodeValidate, db: Database = Depends(get_db)):
    if not payload.code:
        raise HTTPException(status_code=400, detail="Promo code is required")
    return serialize_document(promotions.resolve_promo_code(db, payload.code))


@router.post("/promo-codes", status_code=201, dependencies=[Depends(require_admin)])
def create_promo_code(payload: PromoCodeIn, db: Database = Depends(get_db)):
    return serialize_document(promotions.create_promo_code(db, payload.code, payload.discount))


@router.patch("/promo-codes/{promo_id}", dependencies=[Depends(require_admin)])
def update_promo_code(promo_id: str, payload: PromoCodeUpdate, db: Database = Depends(get_db)):
    updated = promotions.update_promo_code(db, promo_id, payload.model_dump(exclude_unset=True))
    return serialize_document(updated)


@router.delete("/promo-codes/{promo_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_promo_code(promo_id: str, db: Database = Depends(get_db)):
    promotions.delete_promo_code(db, promo_id)
    return Response(status_code=204)


# -----------------------------
# Gift codes
# -----------------------------

@router.get("/gift-codes", dependencies=[Depends(require_admin)])
def list_gift_codes(db: Database = Depends(get_db)):
    return serialize_document(promotions.list_gift_codes(db))


@router.get("/gift-codes/redemptions", dependencies=[Depends(require_admin)])
def list_redemptions(db: Database = Depends(get_db)):
    return serialize_document(promotions.list_redemptions(db))


@router.post("/gift-codes", status_code=201, dependencies=[Depends(require_admin)])
def create_gift_code(payload: GiftCodeIn, db: Database = Depends(get_db)):
    return serialize_document(promotions.create_gift_code(db, payload.code, payload.amount))


@router.post("/gift-codes/generate", status_code=201, dependencies=[Depends(require_admin)])
def generate_gift_code(payload: GiftCodeGenerate, db: Database = Depends(get_db)):
    return serialize_document(promotions.generate_gift_code(db, payload.amount))


@router.post("/gift-codes/redeem")
def redeem_gift_code(payload: RedeemRequest, db: Database = Depends(get_db)):
    if not payload.code or not payload.user_id:
        raise HTTPException(status_code=400, detail="Code and user ID are required")
    result = promotions.redeem_gift_code(db, payload.code, payload.user_id)
    return serialize_document({
        "success": True,
        "user": wallet.get_user(db, payload.user_id),
        "amount_added": result["amount_credited"],
        "message": f"Successfully added {result['amount_credited']} to your wallet",
    })


@router.patch("/gift-codes/{gift_code_id}", dependencies=[Depends(require_admin)])
def update_gift_code(gift_code_id: str, payload: GiftCodeUpdate, db: Database = Depends(get_db)):
    updated = promotions.update_gift_code(db, gift_code_id, payload.model_dump(exclude_unset=True))
    return serialize_document(updated)


@router.delete("/gift-codes/{gift_code_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_gift_code(gift_code_id: str, db: Database = Depends(get_db)):
    promotions.delete_gift_code(db, gift_code_id)
    return Response(status_code=204)


# -----------------------------
# Checkout, orders, users
# -----------------------------

@router.post("/checkout")
def run_checkout(payload: CheckoutRequest, db: Database = Depends(get_db)):
    if not payload.user_id:
        raise HTTPException(status_code=400, detail="User ID is required")
    summary = checkout(db, payload.user_id, payload.promo_code)
    return serialize_document({
        "success": True,
        "message": "Order placed successfully",
        "order_details": summary,
    })


@router.get("/orders", dependencies=[Depends(require_admin)])
def list_orders(db: Database = Depends(get_db)):
    orders = sorted(db.get_documents("order"), key=lambda o: o["created_at"], reverse=True)
    return serialize_document(orders)


@router.post("/users", status_code=201)
def create_user(db: Database = Depends(get_db)):
    return serialize_document(wallet.create_user(db))


@router.get("/user/{user_id}")
def get_user(user_id: str, db: Database = Depends(get_db)):
    return serialize_document(wallet.get_user(db, user_id))


# -----------------------------
# Admin
# -----------------------------

@router.post("/admin/login")
def admin_login(payload: AdminLoginRequest, db: Database = Depends(get_db)):
    session = auth.login_admin(db, payload.email, payload.password)
    return serialize_document({"success": True, **session})


@router.get("/analytics/summary", dependencies=[Depends(require_admin)])
def analytics_summary(db: Database = Depends(get_db)):
    return serialize_document(analytics.sales_summary(db))


@router.get("/analytics/sales-trend", dependencies=[Depends(require_admin)])
def analytics_sales_trend(db: Database = Depends(get_db)):
    return serialize_document(analytics.sales_trend(db))


@router.get("/analytics/top-products", dependencies=[Depends(require_admin)])
def analytics_top_products(limit: int = Query(10, ge=1, le=100), db: Database = Depends(get_db)):
    return serialize_document(analytics.top_products(db, limit))


@router.get("/analytics/category-revenue", dependencies=[Depends(require_admin)])
def analytics_category_revenue(db: Database = Depends(get_db)):
    return serialize_document(analytics.category_revenue(db))


# -----------------------------
# Error handlers
# -----------------------------

def _error_details(errors) -> list:
    return [{"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg", "")} for e in errors]


async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.extra})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": _error_details(exc.errors())})


async def schema_validation_handler(request: Request, exc: SchemaValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid data", "details": _error_details(exc.errors())})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(db: Optional[Database] = None) -> FastAPI:
    if db is None:
        db = seed(Database(), sample_data=config.SEED_SAMPLE_DATA)

    app = FastAPI(title="Electronix Store API")
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SchemaValidationError, schema_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
