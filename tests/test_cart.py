from storefront.data.models import CartItemModel

from tests.helpers import make_user, make_product


def add(client, user, product, quantity=1):
    return client.post(f"/api/cart/items?user_id={user.id}", json={"productId": product.id, "quantity": quantity})


def test_empty_cart_is_created_lazily(client, db):
    user = make_user(db)

    resp = client.get(f"/api/cart?user_id={user.id}")

    assert resp.status_code == 200
    cart = resp.json()["data"]
    assert cart["items"] == []
    assert cart["summary"]["totalItems"] == 0
    assert cart["summary"]["subtotal"] == "0.00"


def test_cart_for_unknown_user(client, db):
    resp = client.get("/api/cart?user_id=42")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "User not found"}


def test_add_items_and_summary(client, db):
    user = make_user(db)
    servo = make_product(db, price="300.00", sale_price="250.00", stock=10)
    sensor = make_product(db, price="120.00", stock=10)

    add(client, user, servo, 1)
    resp = add(client, user, sensor, 1)

    assert resp.status_code == 200
    summary = resp.json()["data"]["summary"]
    assert summary["totalItems"] == 2
    assert summary["subtotal"] == "370.00"
    assert summary["discount"] == "50.00"
    assert summary["shippingEstimate"] == "50.00"
    assert summary["eligibleForFreeShipping"] is False
    assert summary["estimatedTotal"] == "420.00"


def test_adding_same_product_merges_quantities(client, db):
    user = make_user(db)
    product = make_product(db, stock=10)

    add(client, user, product, 2)
    resp = add(client, user, product, 3)

    [item] = resp.json()["data"]["items"]
    assert item["quantity"] == 5
    assert db.query(CartItemModel).count() == 1


def test_cannot_add_more_than_stock(client, db):
    user = make_user(db)
    product = make_product(db, stock=3, title="Servo")

    add(client, user, product, 2)
    resp = add(client, user, product, 2)

    assert resp.status_code == 400
    assert resp.json()["error"] == 'Insufficient stock for "Servo". Only 3 available'


def test_cannot_add_inactive_product(client, db):
    user = make_user(db)
    product = make_product(db, is_active=False)

    resp = add(client, user, product)

    assert resp.status_code == 400


def test_quantity_is_validated(client, db):
    user = make_user(db)
    product = make_product(db)

    resp = add(client, user, product, 0)

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["error"].startswith("quantity:")


def test_update_and_remove_item(client, db):
    user = make_user(db)
    product = make_product(db, price="100.00", stock=10)
    item_id = add(client, user, product, 1).json()["data"]["items"][0]["id"]

    resp = client.patch(f"/api/cart/items/{item_id}?user_id={user.id}", json={"quantity": 4})
    assert resp.json()["data"]["items"][0]["quantity"] == 4
    assert resp.json()["data"]["summary"]["subtotal"] == "400.00"

    resp = client.delete(f"/api/cart/items/{item_id}?user_id={user.id}")
    assert resp.json()["data"]["items"] == []


def test_cannot_touch_someone_elses_cart_item(client, db):
    owner = make_user(db, name="Owner One")
    other = make_user(db, name="Other Two")
    product = make_product(db)
    item_id = add(client, owner, product).json()["data"]["items"][0]["id"]

    resp = client.delete(f"/api/cart/items/{item_id}?user_id={other.id}")

    assert resp.status_code == 403
    assert db.query(CartItemModel).count() == 1


def test_clear_cart(client, db):
    user = make_user(db)
    add(client, user, make_product(db))
    add(client, user, make_product(db))

    resp = client.delete(f"/api/cart?user_id={user.id}")

    assert resp.status_code == 200
    assert resp.json()["data"]["items"] == []
    assert db.query(CartItemModel).count() == 0
