"""
Startup data: sample catalog, the back-office admin, sample promo codes and
the shared guest wallet.
"""

import logging

import auth
import config
import wallet
from database import Database
from schemas import Product, PromoCode

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {
        "name": "French Door Refrigerator 28 cu. ft.",
        "category": "Refrigerator",
        "price": "100000.00",
        "description": "French door refrigerator with FlexZone drawer, Twin Cooling Plus and smart connectivity.",
        "image": "/images/refrigerator.png",
        "specifications": [
            "Capacity: 28 cubic feet",
            "FlexZone Drawer with adjustable temperature",
            "Twin Cooling Plus technology",
            "Wi-Fi enabled",
            "Ice and water dispenser",
            "Energy Star certified",
        ],
        "featured": 1,
    },
    {
        "name": "65-inch 4K QLED Smart TV",
        "category": "TV",
        "price": "50000.00",
        "description": "4K QLED TV with Quantum Dot colour and HDR10+.",
        "image": "/images/television.png",
        "specifications": [
            "Screen Size: 65 inches",
            "Resolution: 4K Ultra HD (3840 x 2160)",
            "Quantum Dot technology",
            "HDR10+ support",
            "120Hz refresh rate",
            "Smart TV with voice control",
        ],
        "featured": 1,
    },
    {
        "name": "Smartwatch Pro",
        "category": "Smartwatch",
        "price": "29999.00",
        "description": "Health tracking smartwatch with multi-day battery.",
        "image": "/images/smartwatch.png",
        "specifications": [
            "1.4-inch Super AMOLED display",
            "Heart rate, ECG and sleep monitoring",
            "5ATM water resistance",
            "Up to 3 days battery life",
            "GPS and NFC",
        ],
        "featured": 1,
    },
    {
        "name": "Ultra Smartphone",
        "category": "Smartphone",
        "price": "80000.00",
        "description": "Flagship smartphone with a 200MP camera.",
        "image": "/images/smartphone.png",
        "specifications": [
            "6.8-inch Dynamic AMOLED display",
            "200MP main camera",
            "12GB RAM, 256GB storage",
            "5000mAh battery with fast charging",
        ],
        "featured": 1,
    },
    {
        "name": "Pro Buds Wireless Earbuds",
        "category": "Earbuds",
        "price": "4999.00",
        "description": "Wireless earbuds with active noise cancellation.",
        "image": "/images/earbuds.png",
        "specifications": [
            "Active Noise Cancellation",
            "Up to 8 hours playback (28 hours with case)",
            "IPX7 water resistance",
            "Wireless charging case",
        ],
        "featured": 1,
    },
    {
        "name": "Ultra Laptop",
        "category": "Laptop",
        "price": "80000.00",
        "description": "16-inch AMOLED laptop for demanding work.",
        "image": "/images/laptop.png",
        "specifications": [
            "16-inch 3K AMOLED touchscreen",
            "32GB RAM, 1TB SSD",
            "Up to 16 hours battery life",
            "Thunderbolt 4 ports",
        ],
        "featured": 1,
    },
    {
        "name": "25,000mAh Fast Charge Power Bank",
        "category": "Power Bank",
        "price": "1999.00",
        "description": "High-capacity portable charger with 45W output.",
        "image": "/images/power-bank.png",
        "specifications": [
            "Capacity: 25,000mAh",
            "45W Super Fast Charging",
            "3 USB ports (2x USB-C, 1x USB-A)",
        ],
        "featured": 0,
    },
    {
        "name": "Smart Front Load Washer 5.0 cu. ft.",
        "category": "Washing Machine",
        "price": "46990.00",
        "description": "Front-load washer with steam cleaning and Wi-Fi control.",
        "image": "/images/washing-machine.png",
        "specifications": [
            "Capacity: 5.0 cubic feet",
            "Steam cleaning technology",
            "14 wash cycles",
        ],
        "featured": 0,
    },
    {
        "name": "WindFree Elite Air Conditioner",
        "category": "AC",
        "price": "20000.00",
        "description": "Draft-free cooling through micro-hole air distribution.",
        "image": "/images/air-conditioner.png",
        "specifications": [
            "18,000 BTU cooling capacity",
            "Smart inverter compressor",
            "Wi-Fi enabled with app control",
        ],
        "featured": 0,
    },
]

SAMPLE_PROMO_CODES = [
    {"code": "WELCOME10", "discount": 10},
    {"code": "SAVE20", "discount": 20},
    {"code": "MEGA50", "discount": 50},
]


def seed_products(db: Database) -> None:
    for p in SAMPLE_PRODUCTS:
        db.create_document("product", Product(**p).model_dump())


def seed_promo_codes(db: Database) -> None:
    for pc in SAMPLE_PROMO_CODES:
        db.create_document("promo_code", PromoCode(**pc).model_dump())


def seed_admin(db: Database) -> dict:
    existing = db.find_one("admin", {"email": config.ADMIN_EMAIL})
    if existing:
        return existing
    return auth.create_admin(db, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)


def seed_guest(db: Database) -> dict:
    return db.get("user", config.GUEST_USER_ID) or wallet.create_user(
        db, config.GUEST_WALLET_BALANCE, user_id=config.GUEST_USER_ID
    )


def seed(db: Database, sample_data: bool = True) -> Database:
    seed_admin(db)
    seed_guest(db)
    if sample_data:
        seed_products(db)
        seed_promo_codes(db)
        logger.info("Seeded %d products and %d promo codes", len(SAMPLE_PRODUCTS), len(SAMPLE_PROMO_CODES))
    return db
