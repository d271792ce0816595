import pytest

from app import create_app
from create_user import create_user
from extensions import db


@pytest.fixture()
def secured_app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "LOGIN_DISABLED": False,
        "SECRET_KEY": "test-secret",
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def users(secured_app):
    return {
        role: create_user(secured_app, f"{role}-user", "s3cret", role)
        for role in ("user", "admin", "root")
    }


@pytest.fixture()
def secured_client(secured_app, users):
    return secured_app.test_client()


def _login(client, role):
    resp = client.post("/api/auth/login", json={"username": f"{role}-user", "password": "s3cret"})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


def test_anonymous_requests_get_401(secured_client):
    resp = secured_client.get("/api/machines")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"
    assert secured_client.get("/api/auth/me").status_code == 401


def test_wrong_password_is_401(secured_client):
    resp = secured_client.post("/api/auth/login", json={"username": "user-user", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "INVALID_CREDENTIALS"


def test_login_me_logout(secured_client):
    who = _login(secured_client, "admin")
    assert who["role"] == "admin"
    me = secured_client.get("/api/auth/me").get_json()
    assert me["username"] == "admin-user"
    assert secured_client.post("/api/auth/logout").status_code == 204
    assert secured_client.get("/api/auth/me").status_code == 401


def test_user_may_record_maintenance_but_not_write_stock(secured_client):
    _login(secured_client, "admin")
    machine = secured_client.post("/api/machines", json={"name": "Lathe"}).get_json()["id"]
    secured_client.post("/api/auth/logout")

    _login(secured_client, "user")
    resp = secured_client.post("/api/stock", json={"name": "Bolt", "quantity": 1})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "FORBIDDEN"

    resp = secured_client.post("/api/maintenance", json={"machineId": machine, "date": "2024-05-01"})
    assert resp.status_code == 201
    assert secured_client.delete(f"/api/maintenance/{resp.get_json()['id']}").status_code == 403


def test_only_root_deletes_stock(secured_client):
    _login(secured_client, "admin")
    item = secured_client.post("/api/stock", json={"name": "Bolt", "quantity": 1}).get_json()
    assert secured_client.delete(f"/api/stock/{item['id']}").status_code == 403
    secured_client.post("/api/auth/logout")

    _login(secured_client, "root")
    assert secured_client.delete(f"/api/stock/{item['id']}").status_code == 204


def test_create_user_refuses_duplicates(secured_app, users):
    assert create_user(secured_app, "user-user", "other", "admin") is None


def test_create_user_reset_changes_password_and_role(secured_app, users, secured_client):
    user_id = create_user(secured_app, "user-user", "n3w", "admin", reset=True)
    assert user_id == users["user"]

    old = secured_client.post("/api/auth/login", json={"username": "user-user", "password": "s3cret"})
    assert old.status_code == 401
    new = secured_client.post("/api/auth/login", json={"username": "user-user", "password": "n3w"})
    assert new.status_code == 200
    assert new.get_json()["role"] == "admin"


@pytest.mark.parametrize("username, password, role", [
    ("  ", "pw", "user"),
    ("someone", "", "user"),
    ("someone", "pw", "superuser"),
])
def test_create_user_rejects_bad_input(secured_app, username, password, role):
    with pytest.raises(ValueError):
        create_user(secured_app, username, password, role)
