"""
Error kinds raised by the store components. The HTTP layer renders each as
its status code plus a short message.
"""


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationError(StoreError):
    status_code = 400


class Unauthorized(StoreError):
    status_code = 401


class NotFound(StoreError):
    status_code = 404


class UserNotFound(NotFound):
    def __init__(self, message="User not found", **extra):
        super().__init__(message, **extra)


class ProductNotFound(NotFound):
    def __init__(self, message="Product not found", **extra):
        super().__init__(message, **extra)


class CartItemNotFound(NotFound):
    def __init__(self, message="Cart item not found", **extra):
        super().__init__(message, **extra)


class PromoCodeNotFound(NotFound):
    def __init__(self, message="Invalid promo code", **extra):
        super().__init__(message, **extra)


class GiftCodeNotFound(NotFound):
    def __init__(self, message="Invalid or expired gift code", **extra):
        super().__init__(message, **extra)


class ReviewNotFound(NotFound):
    def __init__(self, message="Review not found", **extra):
        super().__init__(message, **extra)


class BusinessRuleViolation(StoreError):
    status_code = 400


class EmptyCart(BusinessRuleViolation):
    def __init__(self, message="Cart is empty", **extra):
        super().__init__(message, **extra)


class GiftCodeAlreadyUsed(BusinessRuleViolation):
    def __init__(self, message="Gift code has already been used", **extra):
        super().__init__(message, **extra)


class InsufficientBalance(BusinessRuleViolation):
    def __init__(self, required: str, available: str):
        super().__init__("Insufficient wallet balance", required=required, available=available)
        self.required = required
        self.available = available
