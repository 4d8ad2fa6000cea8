"""
Design Gallery - Automated Test Scenarios
===========================================
Smoke run against a live server: auth, approval, catalog, favorites, cart, share.

Usage:
    python scripts/test_scenarios.py [base_url] [admin_username] [admin_password]
"""
import io
import sys
import uuid

import httpx
from PIL import Image

BASE = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8000"
ADMIN_USER = sys.argv[2] if len(sys.argv) > 2 else "admin"
ADMIN_PASS = sys.argv[3] if len(sys.argv) > 3 else "admin123"
API = f"{BASE}/api"
results = []


def report(test_id, desc, passed, note=""):
    status = "PASS" if passed else "FAIL"
    results.append((test_id, desc, status, note))
    icon = "✅" if passed else "❌"
    print(f"  {icon} {test_id}: {desc} {'- ' + note if note else ''}")


def section(title):
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


def login(username, password):
    """Returns (client with bearer header, ok, note)."""
    r = httpx.post(f"{API}/auth/login", json={"username": username, "password": password}, timeout=15)
    if r.status_code != 200:
        return None, False, f"status={r.status_code}"
    token = r.json()["data"]["access_token"]
    c = httpx.Client(base_url=API, headers={"Authorization": f"Bearer {token}"}, timeout=15)
    return c, True, ""


def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (32, 32), (200, 40, 90)).save(buf, format="PNG")
    return buf.getvalue()


# ============================================================
section("TS-01: Service")

r = httpx.get(f"{BASE}/health", timeout=15)
report("TS-01-01", "Health check", r.status_code == 200)

r = httpx.get(f"{API}/info", timeout=15)
report("TS-01-02", "API info", r.status_code == 200 and r.json().get("success"))

r = httpx.options(f"{API}/designs", headers={"Origin": "http://example.com"}, timeout=15)
report("TS-01-03", "CORS preflight", r.status_code == 204, f"status={r.status_code}")


# ============================================================
section("TS-02: Auth & Approval")

admin, ok, note = login(ADMIN_USER, ADMIN_PASS)
report("TS-02-01", "Admin login", ok, note)
if not admin:
    print("\nCannot continue without admin access.")
    sys.exit(1)

username = f"smoke_{uuid.uuid4().hex[:8]}"
r = httpx.post(f"{API}/auth/register", json={"username": username, "password": "secret123"}, timeout=15)
report("TS-02-02", "Register new user", r.status_code == 201, f"status={r.status_code}")
user_id = r.json().get("data", {}).get("user", {}).get("id") if r.status_code == 201 else None

r = httpx.post(f"{API}/auth/login", json={"username": username, "password": "secret123"}, timeout=15)
report("TS-02-03", "Pending user cannot log in", r.status_code == 401, f"status={r.status_code}")

r = admin.post(f"/admin/users/{user_id}/approve")
report("TS-02-04", "Admin approves user", r.status_code == 200, f"status={r.status_code}")

user, ok, note = login(username, "secret123")
report("TS-02-05", "Approved user logs in", ok, note)


# ============================================================
section("TS-03: Catalog")

files = {"file": ("smoke.png", png_bytes(), "image/png")}
r = admin.post("/upload/image", files=files, data={"category": "sarees"})
report("TS-03-01", "Upload image", r.status_code == 201, f"status={r.status_code}")
key = r.json()["data"]["key"] if r.status_code == 201 else None

r = admin.post("/designs", json={
    "title": "Smoke Test Saree", "category": "sarees", "object_key": key,
    "filename": "smoke.png", "colour": "red", "featured": True,
})
report("TS-03-02", "Create design", r.status_code == 201, f"status={r.status_code}")
design_id = r.json()["data"]["id"] if r.status_code == 201 else None

if user and design_id:
    r = user.get("/designs", params={"category": "sarees", "colour": "red"})
    found = any(d["id"] == design_id for d in r.json().get("data", {}).get("designs", []))
    report("TS-03-03", "Filter finds the design", found)

    r = user.get(f"/designs/{design_id}")
    report("TS-03-04", "Detail increments views", r.status_code == 200 and r.json()["data"]["view_count"] >= 1)


# ============================================================
section("TS-04: Favorites & Cart")

if user and design_id:
    r = user.post(f"/designs/{design_id}/favorite")
    report("TS-04-01", "Add favorite", r.status_code == 200 and r.json()["data"]["like_count"] >= 1)

    r = user.post("/cart/items", json={"design_id": design_id, "quantity": 2})
    report("TS-04-02", "Add to cart", r.status_code == 201, f"status={r.status_code}")

    r = user.post("/cart/share", json={"design_ids": [design_id]})
    ok = r.status_code == 200 and r.json()["data"]["whatsapp_url"].startswith("https://wa.me/")
    report("TS-04-03", "WhatsApp share link", ok)


# ============================================================
section("TS-05: Cleanup")

if design_id:
    r = admin.delete(f"/designs/{design_id}")
    report("TS-05-01", "Delete design", r.status_code == 200)
if user_id:
    r = admin.delete(f"/admin/users/{user_id}")
    report("TS-05-02", "Delete smoke user", r.status_code == 200)


# ============================================================
passed = sum(1 for r in results if r[2] == "PASS")
print(f"\n{passed}/{len(results)} scenarios passed")
sys.exit(0 if passed == len(results) else 1)
