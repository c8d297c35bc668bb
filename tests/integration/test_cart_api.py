"""Cart endpoints."""

from conftest import make_product


class TestCartAuth:
    def test_requires_token(self, client):
        response = client.get("/cart")
        assert response.status_code in (401, 403)

    def test_rejects_bad_token(self, client):
        response = client.get("/cart", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestCartApi:
    def test_empty_cart(self, client, customer_headers):
        response = client.get("/cart", headers=customer_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["items"] == []
        assert body["totalAmount"]["amount"] == "0.000"
        assert body["totalAmount"]["currency"] == "BHD"

    def test_add_items_and_total(self, client, customer_headers, sensory_kit, visual_cards):
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 2}, headers=customer_headers)
        response = client.post(
            "/cart/items", json={"productId": visual_cards.id, "quantity": 1}, headers=customer_headers
        )

        assert response.status_code == 200
        cart = response.json()["cart"]
        assert cart["totalAmount"]["amount"] == "25.00"
        assert cart["totalAmount"]["currency"] == "USD"
        assert cart["totalItemCount"] == 3
        assert [i["productName"] for i in cart["items"]] == ["Sensory Kit", "Visual Schedule Cards"]

    def test_repeated_add_sums_quantity(self, client, customer_headers, sensory_kit):
        for quantity in (2, 3):
            response = client.post(
                "/cart/items", json={"productId": sensory_kit.id, "quantity": quantity}, headers=customer_headers
            )
        items = response.json()["cart"]["items"]
        assert len(items) == 1
        assert items[0]["quantity"] == 5

    def test_cart_persists_between_requests(self, client, customer_headers, sensory_kit):
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 2}, headers=customer_headers)
        response = client.get("/cart", headers=customer_headers)
        assert response.json()["totalItemCount"] == 2

    def test_carts_are_per_user(self, client, customer_headers, other_headers, sensory_kit):
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 2}, headers=customer_headers)
        assert client.get("/cart", headers=other_headers).json()["items"] == []

    def test_insufficient_stock(self, client, customer_headers, sensory_kit):
        response = client.post(
            "/cart/items", json={"productId": sensory_kit.id, "quantity": 11}, headers=customer_headers
        )
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidOperationError"

    def test_stock_check_includes_quantity_already_in_cart(self, client, customer_headers, sensory_kit):
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 8}, headers=customer_headers)
        response = client.post(
            "/cart/items", json={"productId": sensory_kit.id, "quantity": 3}, headers=customer_headers
        )
        assert response.status_code == 409

    def test_unknown_product(self, client, customer_headers):
        response = client.post("/cart/items", json={"productId": "missing", "quantity": 1}, headers=customer_headers)
        assert response.status_code == 404
        assert response.json() == {"success": False, "detail": "Product missing not found", "error": "NotFoundError"}

    def test_zero_quantity_is_a_validation_error(self, client, customer_headers, sensory_kit):
        response = client.post(
            "/cart/items", json={"productId": sensory_kit.id, "quantity": 0}, headers=customer_headers
        )
        assert response.status_code == 422

    def test_update_to_zero_removes(self, client, customer_headers, sensory_kit):
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 2}, headers=customer_headers)
        response = client.patch(f"/cart/items/{sensory_kit.id}", json={"quantity": 0}, headers=customer_headers)
        assert response.status_code == 200
        assert response.json()["cart"]["items"] == []

    def test_update_missing_item(self, client, customer_headers, sensory_kit):
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 1}, headers=customer_headers)
        response = client.patch("/cart/items/other-product", json={"quantity": 2}, headers=customer_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "ItemNotFoundError"

    def test_remove_and_clear(self, client, customer_headers, sensory_kit, visual_cards):
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 1}, headers=customer_headers)
        client.post("/cart/items", json={"productId": visual_cards.id, "quantity": 1}, headers=customer_headers)

        response = client.delete(f"/cart/items/{sensory_kit.id}", headers=customer_headers)
        assert [i["productId"] for i in response.json()["cart"]["items"]] == [visual_cards.id]

        response = client.delete("/cart", headers=customer_headers)
        assert response.json()["cart"]["totalItemCount"] == 0


class TestCartCurrency:
    def test_second_currency_is_rejected_and_cart_stays_readable(self, client, db, customer_headers, sensory_kit):
        dinar_item = make_product(db, "BHD-001", "3.000", currency="BHD", name="Therapy Putty")
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 1}, headers=customer_headers)

        response = client.post(
            "/cart/items", json={"productId": dinar_item.id, "quantity": 1}, headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "CurrencyMismatchError"

        cart = client.get("/cart", headers=customer_headers)
        assert cart.status_code == 200
        assert [i["productId"] for i in cart.json()["items"]] == [sensory_kit.id]
        assert cart.json()["totalAmount"]["currency"] == "USD"

    def test_emptied_cart_accepts_another_currency(self, client, db, customer_headers, sensory_kit):
        dinar_item = make_product(db, "BHD-001", "3.000", currency="BHD", name="Therapy Putty")
        client.post("/cart/items", json={"productId": sensory_kit.id, "quantity": 1}, headers=customer_headers)
        client.delete("/cart", headers=customer_headers)

        response = client.post(
            "/cart/items", json={"productId": dinar_item.id, "quantity": 1}, headers=customer_headers
        )

        assert response.status_code == 200
        assert response.json()["cart"]["totalAmount"]["currency"] == "BHD"
