"""Unit tests for menu API endpoints."""


class TestMenuAPI:
    """Test menu API endpoints."""

    def test_get_menu_success(self, test_client):
        """Test GET /api/menu returns full menu."""
        response = test_client.get("/api/menu")

        assert response.status_code == 200
        data = response.json()
        assert isinstance(data["items"], list)
        assert isinstance(data["categories"], list)

    def test_get_menu_includes_test_items(self, test_client):
        """Test that menu includes drinks from test fixture."""
        response = test_client.get("/api/menu")

        data = response.json()
        assert len(data["items"]) == 7
        latte = data["items"][0]
        assert latte["name"] == "Caffè Latte"
        assert latte["price"] == "$4.75"
        assert latte["price_cents"] == 475
        assert latte["customizations"] == ["milk", "syrup", "sweetener", "topping", "size"]
        assert data["categories"] == ["espresso", "cold brew", "mocha", "tea"]

    def test_search_menu(self, test_client):
        """Test GET /api/menu/search ranks similar drinks."""
        response = test_client.get("/api/menu/search", params={"q": "iced coffee", "limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data[0]["drink"]["name"] == "Iced Coffee"
        assert data[0]["score"] == 1.0
        assert len(data) <= 2

    def test_get_drink_by_id(self, test_client):
        latte = test_client.get("/api/menu").json()["items"][0]

        response = test_client.get(f"/api/menu/drinks/{latte['id']}")

        assert response.status_code == 200
        assert response.json() == latte

    def test_get_unknown_drink(self, test_client):
        response = test_client.get("/api/menu/drinks/no-such-drink")
        assert response.status_code == 404
        assert response.json()["detail"] == "Drink with ID 'no-such-drink' not found"

    def test_search_requires_query(self, test_client):
        assert test_client.get("/api/menu/search").status_code == 422
        assert test_client.get("/api/menu/search", params={"q": "latte", "limit": 0}).status_code == 422

    def test_search_backend_failure(self, test_client, fake_search):
        fake_search.fail = True
        response = test_client.get("/api/menu/search", params={"q": "latte"})
        assert response.status_code == 502


class TestHealthAPI:
    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "ok"}

    def test_liveness(self, test_client):
        response = test_client.get("/health/live")
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness(self, test_client):
        response = test_client.get("/health/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready"}
