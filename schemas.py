"""
Collection Schemas for the Electronics Storefront

Each Pydantic model describes the documents of one collection in the
in-memory store. Collection name is the snake_case class name:
- Product -> "product"
- CartItem -> "cart_item"
- GiftCodeRedemption -> "gift_code_redemption"

Currency fields are two-decimal strings ("30000.00") so no amount ever
passes through a binary float.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

AMOUNT_PATTERN = r"^\d+\.\d{2}$"
SIGNED_AMOUNT_PATTERN = r"^-?\d+\.\d{2}$"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(BaseModel):
    name: str = Field(..., description="Product name")
    category: str = Field(..., description="Catalog category")
    price: str = Field(..., pattern=AMOUNT_PATTERN, description="Unit price")
    description: str = Field(..., description="Long description")
    image: str = Field(..., description="Image reference")
    specifications: List[str] = Field(default_factory=list, description="Ordered spec lines")
    featured: int = Field(0, ge=0, le=1, description="1 if shown on the home page")


class CartItem(BaseModel):
    user_id: str = Field(..., description="Owning user")
    product_id: str = Field(..., description="Product in the cart")
    quantity: int = Field(1, ge=1)


class User(BaseModel):
    wallet_balance: str = Field("0.00", pattern=SIGNED_AMOUNT_PATTERN, description="Spendable wallet balance")
    created_at: datetime = Field(default_factory=utcnow)


class PromoCode(BaseModel):
    code: str = Field(..., min_length=3, description="Upper-case promo code")
    discount: int = Field(..., ge=1, le=100, description="Percentage off")
    active: bool = Field(True)


class GiftCode(BaseModel):
    code: str = Field(..., min_length=3, description="Redeemable code")
    amount: str = Field(..., pattern=AMOUNT_PATTERN, description="Wallet credit")
    active: bool = Field(True, description="False once redeemed")
    created_at: datetime = Field(default_factory=utcnow)


class GiftCodeRedemption(BaseModel):
    user_id: str
    gift_code_id: str
    amount: str = Field(..., pattern=AMOUNT_PATTERN)
    created_at: datetime = Field(default_factory=utcnow)


class Order(BaseModel):
    user_id: str = Field(..., description="Buyer")
    product_id: str = Field(..., description="Purchased product")
    quantity: int = Field(..., ge=1)
    unit_price: str = Field(..., pattern=AMOUNT_PATTERN, description="Catalog price at purchase time")
    total_price: str = Field(..., pattern=AMOUNT_PATTERN, description="Amount paid for this line")
    created_at: datetime = Field(default_factory=utcnow)


class Review(BaseModel):
    product_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10)
    author_name: str = Field(..., min_length=2)
    visible: bool = Field(True, description="Hidden reviews only show in the admin listing")
    created_at: datetime = Field(default_factory=utcnow)


class Admin(BaseModel):
    email: str
    password_hash: str = Field(..., description="HMAC-SHA256 digest of the password")


class ContactMessage(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    message: str = Field(..., min_length=10)
    created_at: datetime = Field(default_factory=utcnow)
