"""Tests for the HTTP routes, wired to the in-memory repository."""

from conftest import make_product


def _v(vid, stock, color="red"):
    return {"id": vid, "size": "M", "color": color, "stock": stock}


def test_health_reports_missing_mongo(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["checks"]["mongodb"].startswith("error")
    assert data["checks"]["redis"] == "skipped"
    assert data["status"] == "error"


def test_create_then_get_product(client):
    response = client.post("/api/products", json={
        "name": "Tee", "regular_price": 20, "status": "published", "variants": [_v("A", 2)],
    })
    assert response.status_code == 201
    created = response.json()
    assert created["stock_status"] == "in stock"
    assert "viewed_by" not in created

    response = client.get(f"/api/products/{created['product_id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Tee"


def test_unknown_product_is_404(client):
    response = client.get("/api/products/missing")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_listing_routes(client, repo):
    repo.add(make_product("a", variants=[_v("1", 3, "red")], sold_count=5))
    repo.add(make_product("b", status="draft", variants=[_v("1", 0, "blue")]))

    assert {p["product_id"] for p in client.get("/api/products").json()} == {"a", "b"}
    assert [p["product_id"] for p in client.get("/api/products/status/draft").json()] == ["b"]
    assert client.get("/api/products/status/bogus").status_code == 422
    assert client.get("/api/products/colors").json() == [{"color": "red", "count": 3}]
    assert client.get("/api/products/best-sellers?limit=1").json()[0]["product_id"] == "a"
    assert len(client.get("/api/products/new-arrivals").json()) == 2


def test_update_and_delete_product(client, repo):
    repo.add(make_product("a"))

    response = client.put("/api/products/a", json={"name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"

    assert client.delete("/api/products/a").status_code == 204
    assert client.delete("/api/products/a").status_code == 404


def test_stock_routes(client, repo):
    repo.add(make_product("p1", variants=[_v("A", 5)]))

    check = client.post("/api/products/check-stock", json={"product_id": "p1", "variant_id": "Z", "quantity": 1})
    assert check.status_code == 200
    assert check.json() == {"available": False, "current_stock": 0, "reason": "variant not found"}

    ok = client.put("/api/products/update-stock",
                    json={"product_id": "p1", "variant_id": "A", "quantity": 3, "operation": "decrease"})
    assert ok.status_code == 200
    assert ok.json()["new_stock"] == 2

    short = client.put("/api/products/update-stock",
                       json={"product_id": "p1", "variant_id": "A", "quantity": 5, "operation": "decrease"})
    assert short.status_code == 409
    assert short.json()["error"] == "insufficient_stock"

    missing = client.put("/api/products/update-stock",
                         json={"product_id": "p1", "variant_id": "Z", "quantity": 1, "operation": "increase"})
    assert missing.status_code == 404

    bad = client.put("/api/products/update-stock",
                     json={"product_id": "p1", "variant_id": "A", "quantity": 1, "operation": "sideways"})
    assert bad.status_code == 422

    snapshot = client.get("/api/products/p1/stock").json()
    assert snapshot["variants"][0]["stock"] == 2
    assert snapshot["stock_status"] == "in stock"


def test_view_tracking_route(client, repo):
    repo.add(make_product("p1"))
    headers = {"X-Session-Id": "s1", "X-Forwarded-For": "1.1.1.1, 10.0.0.1"}

    first = client.post("/api/recommendations/view", json={"product_id": "p1"}, headers=headers)
    again = client.post("/api/recommendations/view", json={"product_id": "p1"},
                        headers={"X-Session-Id": "s2", "X-Forwarded-For": "1.1.1.1"})

    assert first.json() == {"success": True, "counted": True, "view_count": 1}
    assert again.json() == {"success": True, "counted": False, "view_count": 1}
    assert repo.stored("p1").viewed_by[0].ip_address == "1.1.1.1"


def test_recommendation_routes(client, repo):
    repo.add(make_product("src", category="shoes"))
    repo.add(make_product("a", category="shoes", view_count=2))
    repo.add(make_product("b", category="hats", purchase_count=4, images=["b.jpg"]))

    similar = client.get("/api/recommendations/product/src").json()
    assert [p["product_id"] for p in similar] == ["a"]

    trending = client.get("/api/recommendations/trending?limit=2").json()
    assert [p["product_id"] for p in trending] == ["b", "a"]
    assert trending[0]["popularity"] == 8
    assert trending[0]["image_url"] == "/uploads/b.jpg"

    assert client.get("/api/recommendations/user").status_code == 401
    mine = client.get("/api/recommendations/user?limit=1", headers={"X-User-Id": "u1"}).json()
    assert [p["product_id"] for p in mine] == ["b"]

    assert client.get("/api/recommendations/product/missing").status_code == 404
    assert client.get("/api/recommendations/trending?limit=0").status_code == 422


def test_null_for_required_field_is_rejected_and_not_saved(client, repo):
    repo.add(make_product("a", name="Keep me"))

    response = client.put("/api/products/a", json={"name": None})

    assert response.status_code == 422
    assert repo.stored("a").name == "Keep me"
    assert client.get("/api/products").status_code == 200


def test_patch_that_breaks_the_product_is_a_400(client, repo):
    repo.add(make_product("a", variants=[_v("A", 1)]))

    response = client.put("/api/products/a", json={"variants": [_v("A", 1), _v("A", 2, "blue")]})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_input"
    assert len(repo.stored("a").variants) == 1
