from storefront.data.models import ProductModel, UserModel
from storefront.data.seed import DEMO_PRODUCTS, seed

from tests.helpers import make_user, make_product


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_user_and_address(client, db):
    resp = client.post("/api/users", json={"name": "Asha Rao", "email": "asha@example.com"})
    assert resp.status_code == 201
    user_id = resp.json()["data"]["id"]

    resp = client.post(
        f"/api/users/{user_id}/addresses",
        json={
            "fullName": "Asha Rao",
            "phone": "9876543210",
            "line1": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "postalCode": "560001",
        },
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["country"] == "IN"

    addresses = client.get(f"/api/users/{user_id}/addresses").json()["data"]
    assert [a["postalCode"] for a in addresses] == ["560001"]


def test_duplicate_email_is_rejected(client, db):
    make_user(db, email="taken@example.com")

    resp = client.post("/api/users", json={"name": "Someone Else", "email": "taken@example.com"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Email is already registered"


def test_get_product(client, db):
    product = make_product(db, price="300.00", sale_price="250.00")

    data = client.get(f"/api/products/{product.id}").json()["data"]

    assert data["price"] == "300.00"
    assert data["salePrice"] == "250.00"
    assert data["availability"] == "IN_STOCK"


def test_admin_creates_product(client, db, admin_headers):
    payload = {"title": "Jumper wires", "link": "jumper-wires", "sku": "JMP-40", "price": "99.00", "stockQuantity": 40}

    resp = client.post("/api/admin/products", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["stockQuantity"] == 40

    resp = client.post("/api/admin/products", json=payload, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Product with this link or SKU already exists"


def test_sale_price_must_be_lower(client, db, admin_headers):
    payload = {"title": "Relay", "link": "relay", "sku": "RLY-1", "price": "50.00", "salePrice": "60.00"}

    resp = client.post("/api/admin/products", json=payload, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Sale price must be lower than price"


def test_seed_only_fills_empty_catalog(db):
    seed(db)
    seed(db)

    assert db.query(ProductModel).count() == len(DEMO_PRODUCTS)
    assert db.query(UserModel).count() == 1
