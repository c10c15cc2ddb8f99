import pytest

from tests.conftest import auth, register_restaurant, register_user


@pytest.fixture()
def dosa(make_product):
    return make_product(name="Masala Dosa", price=120.0)


@pytest.fixture()
def coffee(make_product):
    return make_product(name="Filter Coffee", price=40.0)


def order_payload(address, *lines, **extra):
    return {
        "items": [{"product_id": product["id"], "quantity": quantity} for product, quantity in lines],
        "payment_method": "COD",
        "address_id": address["id"],
        **extra,
    }


def place(client, headers, payload):
    return client.post("/api/order/create-order", json=payload, headers=headers)


class TestGatewayOrder:
    def test_create_gateway_order(self, client, customer_headers):
        response = client.post(
            "/api/order/create-razorpay-order",
            json={"amount": 499.5},
            headers=customer_headers,
        )

        assert response.status_code == 200
        order = response.json()["order"]
        assert order["id"].startswith("order_")
        assert order["amount"] == 49950
        assert order["currency"] == "INR"
        assert order["receipt"].startswith("foodie_order_")
        assert order["key_id"] == "rzp_test_mock"

    def test_gateway_failure_is_502(self, client, customer_headers, gateway):
        gateway.failure_rate = 1.0

        response = client.post(
            "/api/order/create-razorpay-order",
            json={"amount": 10},
            headers=customer_headers,
        )

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to create razorpay order"

    def test_amount_must_be_positive(self, client, customer_headers):
        response = client.post(
            "/api/order/create-razorpay-order",
            json={"amount": 0},
            headers=customer_headers,
        )

        assert response.status_code == 422

    def test_verify_signature(self, client, customer_headers, gateway):
        data = {
            "razorpay_order_id": "order_abc",
            "razorpay_payment_id": "pay_xyz",
            "razorpay_signature": gateway.sign("order_abc", "pay_xyz"),
        }

        response = client.post("/api/order/verify-razorpay-order", json={"data": data}, headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Razorpay order verified successfully"

    def test_verify_bad_signature(self, client, customer_headers):
        data = {
            "razorpay_order_id": "order_abc",
            "razorpay_payment_id": "pay_xyz",
            "razorpay_signature": "0" * 64,
        }

        response = client.post("/api/order/verify-razorpay-order", json={"data": data}, headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid signature"


class TestCreateOrder:
    def test_cod_order_is_pending(self, client, customer, customer_headers, address, dosa, coffee):
        response = place(client, customer_headers, order_payload(address, (dosa, 2), (coffee, 1)))

        assert response.status_code == 201
        order = response.json()["order"]
        assert order["order_id"].startswith("ORD_")
        assert order["status"] == "PENDING"
        assert order["payment"]["method"] == "COD"
        assert order["payment"]["status"] == "PENDING"
        assert order["payment"]["amount"] == 280.0
        assert order["receiver_name"] == customer["user"]["email"]
        assert [(i["product_id"], i["quantity"], i["price"]) for i in order["items"]] == [
            (dosa["id"], 2, 120.0),
            (coffee["id"], 1, 40.0),
        ]

    def test_prepaid_order_with_valid_signature_is_confirmed(
        self, client, customer_headers, address, dosa, gateway
    ):
        payload = order_payload(
            address,
            (dosa, 1),
            payment_method="PREPAID",
            razorpay_order_id="order_abc",
            razorpay_payment_id="pay_xyz",
            razorpay_signature=gateway.sign("order_abc", "pay_xyz"),
            receiver_name="Jane at the door",
        )

        response = place(client, customer_headers, payload)

        assert response.status_code == 201
        order = response.json()["order"]
        assert order["status"] == "CONFIRMED"
        assert order["payment"]["status"] == "PAID"
        assert order["payment"]["razorpay_payment_id"] == "pay_xyz"
        assert order["receiver_name"] == "Jane at the door"

    def test_prepaid_with_bad_signature(self, client, customer_headers, address, dosa):
        payload = order_payload(
            address,
            (dosa, 1),
            payment_method="PREPAID",
            razorpay_order_id="order_abc",
            razorpay_payment_id="pay_xyz",
            razorpay_signature="forged",
        )

        response = place(client, customer_headers, payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid signature"
        assert client.get("/api/order/get-orders", headers=customer_headers).json()["orders"] == []

    def test_prepaid_needs_payment_details(self, client, customer_headers, address, dosa):
        response = place(client, customer_headers, order_payload(address, (dosa, 1), payment_method="PREPAID"))

        assert response.status_code == 400
        assert response.json()["message"] == "Payment details are required for prepaid orders"

    def test_amount_mismatch(self, client, customer_headers, address, dosa):
        response = place(client, customer_headers, order_payload(address, (dosa, 2), amount=100.0))

        assert response.status_code == 400
        assert response.json()["message"] == "Amount mismatch"

    def test_matching_amount_is_accepted(self, client, customer_headers, address, dosa):
        response = place(client, customer_headers, order_payload(address, (dosa, 2), amount=240.004))

        assert response.status_code == 201

    def test_unavailable_product(self, client, customer_headers, address, make_product):
        product = make_product(status="INACTIVE")

        response = place(client, customer_headers, order_payload(address, (product, 1)))

        assert response.status_code == 400
        assert response.json()["message"] == f"Product {product['id']} is not available"

    def test_someone_elses_address(self, client, address, dosa):
        other = auth(register_user(client, username="bob")["token"])

        response = place(client, other, order_payload(address, (dosa, 1)))

        assert response.status_code == 404
        assert response.json()["message"] == "Address not found"

    def test_empty_items(self, client, customer_headers, address):
        response = place(client, customer_headers, order_payload(address))

        assert response.status_code == 422

    def test_checkout_empties_cart(self, client, customer_headers, address, dosa):
        client.post("/api/cart/add-to-cart", json={"product_id": dosa["id"], "quantity": 2}, headers=customer_headers)

        place(client, customer_headers, order_payload(address, (dosa, 2)))

        assert client.get("/api/cart/get", headers=customer_headers).status_code == 404

    def test_failed_checkout_keeps_cart(self, client, customer_headers, address, dosa):
        client.post("/api/cart/add-to-cart", json={"product_id": dosa["id"], "quantity": 2}, headers=customer_headers)

        place(client, customer_headers, order_payload(address, (dosa, 2), amount=1.0))

        cart = client.get("/api/cart/get", headers=customer_headers).json()["cart"]
        assert cart["cart_total"] == 240.0

    def test_duplicate_order_id(self, client, customer_headers, address, dosa):
        first = place(client, customer_headers, order_payload(address, (dosa, 1), order_id="ORD_fixed"))
        second = place(client, customer_headers, order_payload(address, (dosa, 1), order_id="ORD_fixed"))

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["message"] == "Order id already exists"

    def test_same_millisecond_checkouts_get_distinct_ids(
        self, client, customer_headers, address, dosa, monkeypatch
    ):
        monkeypatch.setattr("foodie.services.orders.epoch_millis", lambda: 1700000000000)
        other = auth(register_user(client, username="bob")["token"])
        their_address = client.post(
            "/api/address/create",
            json={"address": "7 Church Street", "city": "Bengaluru", "state": "Karnataka",
                  "country": "India", "postal_code": "560001"},
            headers=other,
        ).json()["address"]

        first = place(client, customer_headers, order_payload(address, (dosa, 1)))
        second = place(client, other, order_payload(their_address, (dosa, 1)))

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["order"]["order_id"] == "ORD_1700000000000"
        assert second.json()["order"]["order_id"].startswith("ORD_1700000000000_")

    def test_payment_pays_for_one_order_only(self, client, customer_headers, address, dosa, gateway):
        payload = order_payload(
            address,
            (dosa, 1),
            payment_method="PREPAID",
            razorpay_order_id="order_abc",
            razorpay_payment_id="pay_once",
            razorpay_signature=gateway.sign("order_abc", "pay_once"),
        )

        first = place(client, customer_headers, payload)
        replays = [place(client, customer_headers, payload) for _ in range(2)]

        assert first.status_code == 201
        assert [r.status_code for r in replays] == [400, 400]
        assert replays[0].json()["message"] == "Payment already used"
        orders = client.get("/api/order/get-orders", headers=customer_headers).json()["orders"]
        assert len(orders) == 1

    def test_order_broadcasts_metrics(self, client, customer_headers, address, dosa, emitter):
        emitter.events.clear()

        place(client, customer_headers, order_payload(address, (dosa, 3)))

        assert emitter.last("ordersInLast24Hours") == 1
        assert emitter.last("totalRevenueInLast24Hours") == 360.0
        assert emitter.last("cancelledFailedOrdersInLast24Hours") == 0


class TestReadOrders:
    def test_list_is_newest_first_and_scoped(self, client, customer_headers, address, dosa):
        place(client, customer_headers, order_payload(address, (dosa, 1), order_id="ORD_1"))
        place(client, customer_headers, order_payload(address, (dosa, 2), order_id="ORD_2"))
        other = auth(register_user(client, username="bob")["token"])

        mine = client.get("/api/order/get-orders", headers=customer_headers).json()["orders"]
        theirs = client.get("/api/order/get-orders", headers=other).json()["orders"]

        assert [o["order_id"] for o in mine] == ["ORD_2", "ORD_1"]
        assert theirs == []

    def test_get_by_public_id(self, client, customer_headers, address, dosa):
        placed = place(client, customer_headers, order_payload(address, (dosa, 1))).json()["order"]

        response = client.get(f"/api/order/get-order/{placed['order_id']}", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["order"]["id"] == placed["id"]

    def test_get_someone_elses_order(self, client, customer_headers, address, dosa):
        placed = place(client, customer_headers, order_payload(address, (dosa, 1))).json()["order"]
        other = auth(register_user(client, username="bob")["token"])

        response = client.get(f"/api/order/get-order/{placed['order_id']}", headers=other)

        assert response.status_code == 404


class TestOrderStatus:
    @pytest.fixture()
    def order(self, client, customer_headers, address, dosa):
        return place(client, customer_headers, order_payload(address, (dosa, 1))).json()["order"]

    def update(self, client, headers, order, status):
        return client.put(
            f"/api/order/update-order-status/{order['order_id']}",
            json={"status": status},
            headers=headers,
        )

    def test_restaurant_moves_order_along(self, client, order, emitter):
        restaurant = register_restaurant(client)

        response = self.update(client, auth(restaurant["token"]), order, "PREPARING")

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "PREPARING"
        assert emitter.last("orderStatusUpdates") == {"orderId": order["order_id"], "newStatus": "PREPARING"}

    def test_admin_can_fail_order(self, client, admin_headers, order, emitter):
        response = self.update(client, admin_headers, order, "FAILED")

        assert response.status_code == 200
        assert emitter.last("cancelledFailedOrdersInLast24Hours") == 1

    def test_owner_may_cancel(self, client, customer_headers, order):
        response = self.update(client, customer_headers, order, "CANCELLED")

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "CANCELLED"

    def test_owner_may_not_confirm(self, client, customer_headers, order):
        response = self.update(client, customer_headers, order, "DELIVERED")

        assert response.status_code == 403
        assert response.json()["message"] == "Not allowed to update this order"

    def test_stranger_may_not_cancel(self, client, order):
        other = auth(register_user(client, username="bob")["token"])

        assert self.update(client, other, order, "CANCELLED").status_code == 403

    def test_status_is_required(self, client, admin_headers, order):
        response = client.put(
            f"/api/order/update-order-status/{order['order_id']}",
            json={},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Status is required"

    def test_unknown_order(self, client, admin_headers):
        response = client.put(
            "/api/order/update-order-status/ORD_missing",
            json={"status": "CANCELLED"},
            headers=admin_headers,
        )

        assert response.status_code == 404
