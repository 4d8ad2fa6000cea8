from urllib.parse import unquote


def _add(client, who, design_id, quantity=1, **extra):
    return client.post(
        "/api/cart/items", json={"design_id": design_id, "quantity": quantity, **extra}, headers=who["headers"],
    )


def test_empty_cart_created_on_first_access(client, user):
    r = client.get("/api/cart", headers=user["headers"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["user_id"] == user["id"]
    assert data["items"] == []
    assert data["total_items"] == 0
    # same cart afterwards
    assert client.get("/api/cart", headers=user["headers"]).json()["data"]["id"] == data["id"]


def test_add_merges_quantity_and_rejects_overflow(client, user, make_design):
    design = make_design()
    first = _add(client, user, design["id"], 4)
    assert first.status_code == 201
    assert first.json()["message"] == "Item added to cart"

    second = _add(client, user, design["id"], 4)
    assert second.status_code == 201
    assert second.json()["data"]["quantity"] == 8
    assert second.json()["message"] == "Cart item quantity updated"

    third = _add(client, user, design["id"], 3)
    assert third.status_code == 400

    cart = client.get("/api/cart", headers=user["headers"]).json()["data"]
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 8
    assert cart["total_quantity"] == 8


def test_add_validates_quantity_and_design(client, admin, user, make_design):
    design = make_design()
    assert _add(client, user, design["id"], 0).status_code == 400
    assert _add(client, user, design["id"], 11).status_code == 400
    assert _add(client, user, 9999).status_code == 404

    client.put(f"/api/designs/{design['id']}", json={"status": "inactive"}, headers=admin["headers"])
    r = _add(client, user, design["id"])
    assert r.status_code == 404
    assert r.json()["message"] == "Design not found or not available"


def test_update_and_remove_item(client, user, make_design):
    design = make_design()
    item = _add(client, user, design["id"], 2).json()["data"]

    r = client.put(f"/api/cart/items/{item['id']}", json={"quantity": 10, "notes": "size M"}, headers=user["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["quantity"] == 10
    assert r.json()["data"]["notes"] == "size M"

    assert client.put(f"/api/cart/items/{item['id']}", json={}, headers=user["headers"]).status_code == 400
    assert client.put(
        f"/api/cart/items/{item['id']}", json={"quantity": 11}, headers=user["headers"],
    ).status_code == 400

    assert client.delete(f"/api/cart/items/{item['id']}", headers=user["headers"]).status_code == 200
    assert client.delete(f"/api/cart/items/{item['id']}", headers=user["headers"]).status_code == 404


def test_items_are_private(client, user, make_user, make_design):
    design = make_design()
    item = _add(client, user, design["id"]).json()["data"]
    mallory = make_user("mallory")
    r = client.put(f"/api/cart/items/{item['id']}", json={"quantity": 5}, headers=mallory["headers"])
    assert r.status_code == 404
    assert client.delete(f"/api/cart/items/{item['id']}", headers=mallory["headers"]).status_code == 404


def test_clear_cart(client, user, make_design):
    for _ in range(3):
        _add(client, user, make_design()["id"])
    r = client.delete("/api/cart", headers=user["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["removed_items"] == 3
    assert client.get("/api/cart", headers=user["headers"]).json()["data"]["items"] == []


def test_cart_hides_inactive_designs(client, admin, user, make_design):
    design = make_design()
    _add(client, user, design["id"])
    client.put(f"/api/designs/{design['id']}", json={"status": "draft"}, headers=admin["headers"])
    assert client.get("/api/cart", headers=user["headers"]).json()["data"]["items"] == []


def test_share_design_ids(client, user, make_design):
    a = make_design(title="Ruby Saree", colour="red")
    b = make_design(title="Green Lehenga")
    r = client.post("/api/cart/share", json={"design_ids": [b["id"], a["id"]]}, headers=user["headers"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["design_count"] == 2
    assert data["whatsapp_url"].startswith("https://wa.me/919876543210?text=")
    assert data["share_url"] == data["whatsapp_url"]
    # request order is kept
    assert data["message"].index("Green Lehenga") < data["message"].index("Ruby Saree")
    assert "Design #" + a["design_number"] in data["message"]
    assert unquote(data["whatsapp_url"].split("text=", 1)[1]) == data["message"]


def test_share_uses_settings_and_custom_message(client, admin, user, make_design):
    design = make_design(title="Ruby Saree")
    client.put(
        "/api/admin/settings/whatsapp_contact_numbers",
        json={"value": "+44 20 7946 0000, +1 555 0100"},
        headers=admin["headers"],
    )
    r = client.post(
        "/api/cart/share/whatsapp",
        json={"design_ids": [design["id"]], "message": "Look: {design_list}"},
        headers=user["headers"],
    )
    data = r.json()["data"]
    assert data["whatsapp_url"].startswith("https://wa.me/442079460000?text=")
    assert data["message"].startswith("Look: • Ruby Saree")


def test_share_cart_items(client, user, make_design):
    design = make_design(title="From Cart")
    item = _add(client, user, design["id"]).json()["data"]
    r = client.post("/api/cart/share", json={"items": [item["id"]]}, headers=user["headers"])
    assert r.status_code == 200
    assert "From Cart" in r.json()["data"]["message"]


def test_share_validation(client, user, make_design):
    assert client.post("/api/cart/share", json={}, headers=user["headers"]).status_code == 400
    assert client.post("/api/cart/share", json={"design_ids": []}, headers=user["headers"]).status_code == 400
    assert client.post("/api/cart/share", json={"design_ids": [9999]}, headers=user["headers"]).status_code == 404
    too_many = client.post("/api/cart/share", json={"design_ids": list(range(1, 22))}, headers=user["headers"])
    assert too_many.status_code == 400


def test_share_limit_counts_raw_ids(client, user, make_design):
    design = make_design()
    repeated = client.post("/api/cart/share", json={"design_ids": [design["id"]] * 21}, headers=user["headers"])
    assert repeated.status_code == 400
    assert repeated.json()["message"] == "Maximum 20 designs can be shared at once"

    mixed = client.post(
        "/api/cart/share",
        json={"design_ids": [design["id"]] * 15, "items": list(range(1, 7))},
        headers=user["headers"],
    )
    assert mixed.status_code == 400

    twenty = client.post("/api/cart/share", json={"design_ids": [design["id"]] * 20}, headers=user["headers"])
    assert twenty.status_code == 200
    assert twenty.json()["data"]["design_count"] == 1
