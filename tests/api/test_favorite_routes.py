from factories import auth_headers


def test_toggle_and_list_favorites(client, market, alice, bob):
    bike = market.product(bob, title="Bike", price=80.0, image_urls=["https://cdn.example/bike.jpg"])

    saved = client.post(f"/api/favorites/{bike.id}/toggle", headers=auth_headers(alice))
    assert saved.json() == {"product_id": bike.id, "is_favorite": True}

    status = client.get(f"/api/favorites/{bike.id}", headers=auth_headers(alice)).json()
    assert status["is_favorite"] is True

    favorites = client.get("/api/favorites", headers=auth_headers(alice)).json()["favorites"]
    assert [(f["title"], f["image_url"]) for f in favorites] == [("Bike", "https://cdn.example/bike.jpg")]

    removed = client.post(f"/api/favorites/{bike.id}/toggle", headers=auth_headers(alice))
    assert removed.json()["is_favorite"] is False


def test_toggle_unknown_product(client, alice):
    response = client.post("/api/favorites/missing/toggle", headers=auth_headers(alice))

    assert response.status_code == 404
