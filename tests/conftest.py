import pytest
from fastapi.testclient import TestClient

import config
import promotions
import wallet
from database import Database
from main import create_app
from schemas import Product
from seed import seed_admin


@pytest.fixture
def db():
    database = Database(name="test")
    seed_admin(database)
    return database


@pytest.fixture
def make_product(db):
    def _make(name="Product A", price="30000.00", category="TV", featured=0):
        product = Product(
            name=name,
            category=category,
            price=price,
            description=f"{name} description",
            image=f"/images/{name.lower().replace(' ', '-')}.png",
            specifications=["Spec one", "Spec two"],
            featured=featured,
        )
        return db.create_document("product", product.model_dump())
    return _make


@pytest.fixture
def make_user(db):
    def _make(balance="0.00", user_id=None):
        return wallet.create_user(db, balance, user_id=user_id)
    return _make


@pytest.fixture
def save20(db):
    return promotions.create_promo_code(db, "SAVE20", 20)


@pytest.fixture
def client(db):
    return TestClient(create_app(db))


@pytest.fixture
def admin_headers(client):
    resp = client.post("/admin/login", json={"email": config.ADMIN_EMAIL, "password": config.ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}
