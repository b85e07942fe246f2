from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from homecook.auth import Principal
from homecook.config import Settings
from homecook.db import Database
from homecook.main import create_app
from homecook.models import FoodItem, Menu, Role, User

NOW = datetime(2026, 5, 1, 12, 0, 0)


class FakeImageStore:
    def __init__(self) -> None:
        self.uploads = []

    def upload(self, data: bytes, folder: str, filename, content_type: str) -> str:
        self.uploads.append((folder, filename, content_type, len(data)))
        return f"https://images.example.com/home-cooking/{folder}/{len(self.uploads)}-{filename}"


@pytest.fixture
def database():
    d = Database("sqlite://")
    d.create_all()
    yield d
    d.dispose()


@pytest.fixture
def db(database):
    s = database.session()
    yield s
    s.close()


def make_user(db, role=Role.EATER, name="Sam", email=None, bio=None) -> User:
    u = User(
        email=email or f"{name.lower().replace(' ', '.')}.{role.lower()}@example.com",
        password_hash="not-a-real-hash",
        name=name,
        role=role,
        address="1 Main St",
        bio=bio,
    )
    db.add(u)
    db.commit()
    return u


def make_item(db, cook: User, name="Lasagna", price=12.5, servings=5, servings_sold=0, available=True, **kw) -> FoodItem:
    menu = db.query(Menu).filter(Menu.cook_id == cook.id).first()
    if not menu:
        menu = Menu(cook_id=cook.id, name="My Menu")
        db.add(menu)
        db.flush()
    it = FoodItem(
        menu_id=menu.id,
        cook_id=cook.id,
        name=name,
        description=kw.pop("description", f"Homemade {name.lower()}"),
        price=price,
        servings=servings,
        servings_sold=servings_sold,
        available=available,
        **kw,
    )
    db.add(it)
    db.commit()
    return it


def principal(u: User) -> Principal:
    return Principal(user_id=u.id, role=u.role)


@pytest.fixture
def cook(db):
    return make_user(db, Role.COOK, name="Maria")


@pytest.fixture
def eater(db):
    return make_user(db, Role.EATER, name="Tom")


# -------------------
# HTTP
# -------------------
@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def client(image_store):
    app = create_app(Settings(database_url="sqlite://", jwt_secret="test-secret"), image_store=image_store)
    app.state.clock = lambda: NOW
    with TestClient(app) as c:
        yield c
    app.state.database.dispose()


def signup(client, name: str, role: str) -> dict:
    email = f"{name.lower()}@example.com"
    r = client.post(
        "/auth/register",
        json={"email": email, "password": "pw-123456", "name": name, "role": role, "address": "1 Main St"},
    )
    assert r.status_code == 200, r.text
    user = r.json()

    r = client.post("/auth/login", json={"email": email, "password": "pw-123456"})
    assert r.status_code == 200, r.text
    return {"id": user["id"], "headers": {"Authorization": f"Bearer {r.json()['token']}"}}
