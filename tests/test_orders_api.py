"""HTTP tests for /api/orders and payment intents."""
import pytest
from bson import ObjectId

from payments import PaymentGateway, get_payment_gateway, to_minor_units


def _order_body(product_id=None, items=None):
    if items is None:
        items = [{"name": "Ikat Saree", "qty": 2, "price": 2500, "product": str(product_id or ObjectId())}]
    return {
        "order_items": items,
        "shipping_address": {"address": "1 MG Road", "city": "Pune", "postal_code": "411001"},
        "payment_method": "Razorpay",
        "items_price": 5000,
        "tax_price": 900,
        "shipping_price": 0,
        "total_price": 5900,
    }


def _create(client, headers):
    res = client.post("/api/orders", json=_order_body(), headers=headers)
    assert res.status_code == 201
    return res.json()


def test_create_order(client, customer, headers_for):
    order = _create(client, headers_for(customer))

    assert order["user"] == str(customer["_id"])
    assert order["is_paid"] is False
    assert order["status"] == "pending"
    assert order["order_items"][0]["qty"] == 2
    assert order["shipping_address"]["country"] == "India"


def test_create_order_without_items(client, customer, headers_for):
    res = client.post("/api/orders", json=_order_body(items=[]), headers=headers_for(customer))
    assert res.status_code == 400
    assert res.json() == {"message": "No order items"}


def test_create_order_with_bad_product_id(client, customer, headers_for):
    items = [{"name": "x", "qty": 1, "price": 1, "product": "nope"}]
    res = client.post("/api/orders", json=_order_body(items=items), headers=headers_for(customer))
    assert res.status_code == 400


def test_my_orders_only_lists_own(client, customer, make_user, headers_for):
    other = make_user()
    _create(client, headers_for(customer))
    _create(client, headers_for(other))

    mine = client.get("/api/orders/myorders", headers=headers_for(customer)).json()

    assert len(mine) == 1
    assert mine[0]["user"] == str(customer["_id"])


def test_get_order_populates_user(client, customer, headers_for):
    order = _create(client, headers_for(customer))

    res = client.get(f"/api/orders/{order['id']}", headers=headers_for(customer))

    assert res.status_code == 200
    assert res.json()["user"]["name"] == "Jane Buyer"
    assert res.json()["user"]["email"] == customer["email"]


def test_get_order_of_someone_else(client, customer, make_user, admin, headers_for):
    order = _create(client, headers_for(customer))

    assert client.get(f"/api/orders/{order['id']}", headers=headers_for(make_user())).status_code == 403
    assert client.get(f"/api/orders/{order['id']}", headers=headers_for(admin)).status_code == 200


def test_get_missing_order(client, customer, headers_for):
    res = client.get(f"/api/orders/{ObjectId()}", headers=headers_for(customer))
    assert res.status_code == 404
    assert res.json() == {"message": "Order not found"}


def test_pay_order(client, customer, headers_for):
    order = _create(client, headers_for(customer))
    result = {"id": "pay_1", "status": "captured", "update_time": "now", "email_address": "j@example.com"}

    res = client.put(f"/api/orders/{order['id']}/pay", json=result, headers=headers_for(customer))

    assert res.status_code == 200
    assert res.json()["is_paid"] is True
    assert res.json()["paid_at"]
    assert res.json()["payment_result"]["id"] == "pay_1"


def test_pay_order_of_someone_else(client, customer, make_user, admin, headers_for):
    order = _create(client, headers_for(customer))
    result = {"id": "pay_2", "status": "captured"}

    res = client.put(f"/api/orders/{order['id']}/pay", json=result, headers=headers_for(make_user(name="Ravi")))

    assert res.status_code == 403
    assert res.json() == {"message": "Not authorized to pay this order"}
    mine = client.get(f"/api/orders/{order['id']}", headers=headers_for(customer)).json()
    assert mine["is_paid"] is False
    assert client.put(f"/api/orders/{order['id']}/pay", json=result, headers=headers_for(admin)).status_code == 200


def test_deliver_order_admin_only(client, customer, admin, headers_for):
    order = _create(client, headers_for(customer))

    assert client.put(f"/api/orders/{order['id']}/deliver", headers=headers_for(customer)).status_code == 403
    res = client.put(f"/api/orders/{order['id']}/deliver", headers=headers_for(admin))

    assert res.status_code == 200
    assert res.json()["is_delivered"] is True
    assert res.json()["status"] == "delivered"


def test_admin_lists_all_orders(client, customer, make_user, admin, headers_for):
    _create(client, headers_for(customer))
    _create(client, headers_for(make_user(name="Ravi")))

    res = client.get("/api/orders", headers=headers_for(admin))

    assert res.status_code == 200
    assert sorted(o["user"]["name"] for o in res.json()) == ["Jane Buyer", "Ravi"]
    assert all("email" not in o["user"] for o in res.json())


def test_payment_intent(client, customer, headers_for, gateway):
    res = client.post("/api/orders/razorpay", json={"amount": 5900.5}, headers=headers_for(customer))

    assert res.status_code == 200
    assert res.json()["amount"] == 590050
    assert gateway.calls == [5900.5]


def test_payment_intent_without_gateway(client, customer, headers_for):
    client.app.dependency_overrides.pop(get_payment_gateway)

    res = client.post("/api/orders/razorpay", json={"amount": 10}, headers=headers_for(customer))

    assert res.status_code == 503
    assert res.json() == {"message": "Payment gateway not configured"}


def test_to_minor_units():
    assert to_minor_units(10) == 1000
    assert to_minor_units(19.99) == 1999


def test_payment_gateway_is_abstract():
    with pytest.raises(TypeError):
        PaymentGateway()
