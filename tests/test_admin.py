import pytest

from tests.conftest import PASSWORD, auth, create_admin, register_restaurant, register_user, unique_email


class TestAdminSession:
    def test_login(self, admin):
        assert admin["message"] == "Admin logged in successfully"
        assert admin["user"]["role"] == "ADMIN"

    def test_customer_cannot_log_in_as_admin(self, client):
        customer = register_user(client)

        response = client.post(
            "/api/admin/login",
            json={"email": customer["user"]["email"], "password": PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Admin not found"

    def test_logout(self, client, admin_headers):
        response = client.post("/api/admin/logout", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Admin logged out successfully"
        assert client.get("/api/admin/all", headers=admin_headers).status_code == 401

    @pytest.mark.parametrize("path", ["/api/admin/all", "/api/admin/users", "/api/admin/orders"])
    def test_customers_are_forbidden(self, client, customer_headers, path):
        response = client.get(path, headers=customer_headers)

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "User is not an admin"}


class TestManageAdmins:
    def test_add_new_admin(self, client, admin_headers):
        email = unique_email("admin")

        response = client.post(
            "/api/admin/add",
            json={"email": email, "password": PASSWORD, "name": "Second"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "ADMIN"
        login = client.post("/api/admin/login", json={"email": email, "password": PASSWORD})
        assert login.status_code == 200

    def test_add_promotes_existing_account(self, client, admin_headers):
        customer = register_user(client)

        response = client.post(
            "/api/admin/add",
            json={"email": customer["user"]["email"], "password": "ignored"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["id"] == customer["user"]["id"]
        # Promotion ends the customer session
        assert client.get("/api/auth/me", headers=auth(customer["token"])).status_code == 401

    def test_add_existing_admin(self, client, admin, admin_headers):
        response = client.post(
            "/api/admin/add",
            json={"email": admin["user"]["email"], "password": PASSWORD},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Admin already exists"

    def test_list_admins(self, client, admin, admin_headers):
        response = client.get("/api/admin/all", headers=admin_headers)

        assert response.status_code == 200
        assert [a["id"] for a in response.json()["data"]] == [admin["user"]["id"]]

    def test_revoke_demotes_and_ends_sessions(self, client, admin_headers):
        other = create_admin(client)

        response = client.delete(f"/api/admin/revoke/{other['user']['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Admin revoked successfully"
        assert client.get("/api/admin/all", headers=auth(other["token"])).status_code == 401

        users = client.get("/api/admin/users?role=USER", headers=admin_headers).json()["data"]
        assert other["user"]["id"] in [u["id"] for u in users]

    def test_cannot_revoke_self(self, client, admin, admin_headers):
        response = client.delete(f"/api/admin/revoke/{admin['user']['id']}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot revoke yourself"

    def test_revoke_non_admin(self, client, admin_headers, customer):
        response = client.delete(f"/api/admin/revoke/{customer['user']['id']}", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Admin not found"


class TestManageUsers:
    def test_list_users_filters_by_role(self, client, admin_headers, customer, restaurant):
        response = client.get("/api/admin/users?role=RESTAURANT", headers=admin_headers)

        assert response.status_code == 200
        assert [u["id"] for u in response.json()["data"]] == [restaurant["user"]["id"]]

    def test_update_user(self, client, admin_headers, customer):
        new_email = unique_email("renamed")

        response = client.put(
            f"/api/admin/update-user/{customer['user']['id']}",
            json={"name": "Jane Doe", "email": new_email.upper()},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Jane Doe"
        assert data["email"] == new_email

    def test_update_user_clears_name(self, client, admin_headers, customer):
        url = f"/api/admin/update-user/{customer['user']['id']}"
        client.put(url, json={"name": "Jane Doe"}, headers=admin_headers)

        response = client.put(url, json={"name": None}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] is None

    def test_update_user_email_cannot_be_nulled(self, client, admin_headers, customer):
        response = client.put(
            f"/api/admin/update-user/{customer['user']['id']}",
            json={"email": None},
            headers=admin_headers,
        )

        assert response.status_code == 422

    def test_update_user_email_conflict(self, client, admin, admin_headers, customer):
        response = client.put(
            f"/api/admin/update-user/{customer['user']['id']}",
            json={"email": admin["user"]["email"]},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Email already in use"

    def test_role_change_to_restaurant_needs_profile(self, client, admin_headers, customer):
        response = client.put(
            f"/api/admin/update-user/{customer['user']['id']}",
            json={"role": "RESTAURANT"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_role_change_broadcasts_presence(self, client, admin_headers, emitter):
        restaurant = register_restaurant(client)
        emitter.events.clear()

        response = client.put(
            f"/api/admin/update-user/{restaurant['user']['id']}",
            json={"role": "USER"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert emitter.last("currentActiveRestaurants") == 0
        assert emitter.last("activeUsers") == 1

    def test_delete_user(self, client, admin_headers, customer, customer_headers):
        response = client.delete(f"/api/admin/delete-user/{customer['user']['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert client.get("/api/auth/me", headers=customer_headers).status_code == 401
        login = client.post(
            "/api/auth/login",
            json={"email": customer["user"]["email"], "password": PASSWORD},
        )
        assert login.status_code == 401

        active = client.get("/api/admin/users", headers=admin_headers).json()["data"]
        assert customer["user"]["id"] not in [u["id"] for u in active]

    def test_cannot_delete_self(self, client, admin, admin_headers):
        response = client.delete(f"/api/admin/delete-user/{admin['user']['id']}", headers=admin_headers)

        assert response.status_code == 400


class TestAuditLog:
    def test_mutations_are_audited(self, client, admin, admin_headers, customer):
        client.put(
            f"/api/admin/update-user/{customer['user']['id']}",
            json={"name": "Jane Doe"},
            headers=admin_headers,
        )
        client.delete(f"/api/admin/delete-user/{customer['user']['id']}", headers=admin_headers)

        response = client.get("/api/admin/audit-logs", headers=admin_headers)

        assert response.status_code == 200
        logs = response.json()["data"]
        assert [(log["action"], log["entity"]) for log in logs[:2]] == [("DELETE", "USER"), ("UPDATE", "USER")]
        assert all(log["actor_id"] == admin["user"]["id"] for log in logs)
        assert logs[1]["details"] == {"name": "Jane Doe"}


class TestBackOfficeListings:
    def test_restaurants(self, client, admin_headers, restaurant):
        response = client.get("/api/admin/restaurants", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [r["id"] for r in data] == [restaurant["user"]["id"]]
        assert data[0]["restaurant_profile"]["name"] == "Spice Route"

    def test_products_and_orders_by_restaurant(
        self, client, admin_headers, restaurant, customer_headers, address, make_product
    ):
        restaurant_id = restaurant["user"]["id"]
        offered = make_product(name="Idli", price=60.0, restaurant_ids=[restaurant_id])
        make_product(name="Vada", price=40.0)

        products = client.get(
            f"/api/admin/products/restaurant/{restaurant_id}", headers=admin_headers
        ).json()["data"]
        assert [p["id"] for p in products] == [offered["id"]]

        client.post(
            "/api/order/create-order",
            json={
                "items": [{"product_id": offered["id"], "quantity": 2}],
                "payment_method": "COD",
                "address_id": address["id"],
            },
            headers=customer_headers,
        )

        orders = client.get(
            f"/api/admin/orders/restaurant/{restaurant_id}", headers=admin_headers
        ).json()["data"]
        assert len(orders) == 1
        assert orders[0]["items"][0]["product_id"] == offered["id"]

    @pytest.mark.parametrize("listing", ["products", "orders"])
    def test_unknown_restaurant(self, client, admin_headers, listing):
        response = client.get(f"/api/admin/{listing}/restaurant/9999", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Restaurant not found"

    @pytest.mark.parametrize("listing", ["products", "orders"])
    def test_customer_id_is_not_a_restaurant(self, client, admin_headers, customer, listing):
        response = client.get(
            f"/api/admin/{listing}/restaurant/{customer['user']['id']}", headers=admin_headers
        )

        assert response.status_code == 404

    def test_orders_status_filter(self, client, admin_headers):
        response = client.get("/api/admin/orders?status=bogus", headers=admin_headers)

        assert response.status_code == 400

        response = client.get("/api/admin/orders?status=pending", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"] == []
