"""
Shared fixtures. Environment is configured before the app is imported:
in-memory SQLite, cheap bcrypt, rate limiting off, temporary media dir.
"""

import io
import os
import tempfile

os.environ["SECRET_KEY"] = "test-secret-key-for-pytest-only"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="gallery-media-")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from main import app  # noqa: E402
from config.database import Base, engine, SessionLocal  # noqa: E402
from common.security import hash_password  # noqa: E402
from common.storage import LocalObjectStore, get_storage  # noqa: E402
from modules.admin.models import AppSetting, DEFAULT_SETTINGS  # noqa: E402
from modules.auth.service import auth_service  # noqa: E402
from modules.user.models import User  # noqa: E402


def png_bytes(size=(16, 16), color=(120, 30, 200), fmt="PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for key, value, description in DEFAULT_SETTINGS:
            db.add(AppSetting(key=key, value=value, description=description))
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture
def store(tmp_path):
    storage = LocalObjectStore(root=str(tmp_path / "media"), public_base_url="/media")
    app.dependency_overrides[get_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def client(store):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_user():
    """Factory: create a user directly in the database and return id, token and headers."""
    def _make(username, password="secret123", is_admin=False, is_approved=True):
        session = SessionLocal()
        try:
            user = User(
                username=username,
                password_hash=hash_password(password),
                is_admin=is_admin,
                is_approved=is_approved,
            )
            session.add(user)
            session.commit()
            token, _ = auth_service.issue_token(user)
            return {
                "id": user.id,
                "username": username,
                "password": password,
                "token": token,
                "headers": {"Authorization": f"Bearer {token}"},
            }
        finally:
            session.close()
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", is_admin=True, is_approved=True)


@pytest.fixture
def user(make_user):
    return make_user("alice")


@pytest.fixture
def put_image(store):
    """Store a real PNG and return its key."""
    counter = {"n": 0}

    def _put(category="designs", name=None):
        counter["n"] += 1
        key = name or f"{category}/2026/01/test_{counter['n']:04d}.png"
        store.put(key, png_bytes(), "image/png")
        return key
    return _put


@pytest.fixture
def make_design(client, admin, put_image):
    """Create a design through the API and return its JSON body."""
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        body = {
            "title": f"Design {counter['n']}",
            "category": "sarees",
            "object_key": put_image(fields.get("category", "sarees")),
            "design_number": f"SAR-{counter['n']:03d}",
        }
        body.update(fields)
        r = client.post("/api/designs", json=body, headers=admin["headers"])
        assert r.status_code == 201, r.text
        return r.json()["data"]
    return _make
