from conftest import png_bytes


def test_register_approve_browse_favorite_flow(client, admin):
    r = client.post("/api/auth/register", json={"username": "meera", "password": "secret123"})
    assert r.status_code == 201
    user_id = r.json()["data"]["user"]["id"]

    assert client.post("/api/auth/login", json={"username": "meera", "password": "secret123"}).status_code == 401

    assert client.post(f"/api/admin/users/{user_id}/approve", headers=admin["headers"]).status_code == 200

    login = client.post("/api/auth/login", json={"username": "meera", "password": "secret123"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['data']['access_token']}"}

    upload = client.post(
        "/api/upload/image",
        files={"file": ("IMG_0007.png", png_bytes(), "image/png")},
        data={"category": "sarees"},
        headers=admin["headers"],
    )
    assert upload.status_code == 201
    created = client.post("/api/designs", json={
        "title": "Kanjivaram Silk", "category": "sarees",
        "object_key": upload.json()["data"]["key"], "filename": "IMG_0007.png",
    }, headers=admin["headers"])
    assert created.status_code == 201
    design = created.json()["data"]
    assert design["design_number"] == "SAR-007"

    detail = client.get(f"/api/designs/{design['id']}", headers=headers).json()["data"]
    assert detail["view_count"] == design["view_count"] + 1

    toggle_url = f"/api/designs/{design['id']}/favorite/toggle"
    liked = client.post(toggle_url, headers=headers).json()["data"]
    assert liked["is_favorited"] is True
    assert liked["like_count"] == 1

    unliked = client.post(toggle_url, headers=headers).json()["data"]
    assert unliked["is_favorited"] is False
    assert unliked["like_count"] == 0

    assert client.post("/api/cart/items", json={"design_id": design["id"], "quantity": 2}, headers=headers).status_code == 201
    share = client.post("/api/cart/share", json={"design_ids": [design["id"]]}, headers=headers)
    assert "Kanjivaram Silk" in share.json()["data"]["message"]
