"""
Application configuration, read once from the environment at import time.
"""

import os

SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key-change-me")
TOKEN_EXPIRY_MINUTES = int(os.getenv("TOKEN_EXPIRY_MINUTES", "60"))

# Seeded back-office account
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@electronixz.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "12345")

# Storefront visitors without an account share this wallet
GUEST_USER_ID = os.getenv("GUEST_USER_ID", "guest-user")
GUEST_WALLET_BALANCE = os.getenv("GUEST_WALLET_BALANCE", "0.00")

SEED_SAMPLE_DATA = os.getenv("SEED_SAMPLE_DATA", "1") == "1"

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "8000"))
