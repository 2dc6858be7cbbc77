# File: tests/test_auth.py

from datetime import timedelta

from sqlmodel import Session, select

from app.core.security import TokenService
from app.models.user import User, UserRole
from app.routers.auth import get_token_service
from app.main import app as fastapi_app

from conftest import ADMIN_SECRET, JWT_SECRET, bearer, login, register


def test_register_creates_member(client, engine):
    resp = register(client)
    assert resp.status_code == 201
    assert resp.json() == {"success": True, "message": "User register successfully"}

    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == "alice@example.com")).one()
        assert user.role == UserRole.MEMBER
        assert user.password_hash != "secret123"
        assert not hasattr(user, "original_password")


def test_register_same_email_twice_conflicts(client):
    assert register(client).status_code == 201
    resp = register(client, name="Other")
    assert resp.status_code == 406
    assert resp.json()["message"] == "Email already used"


def test_email_match_is_case_sensitive(client):
    assert register(client).status_code == 201
    assert register(client, email="Alice@example.com").status_code == 201


def test_register_requires_fields(client):
    resp = client.post("/api/auth/register", data={"name": "No Email", "password": "pw"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_admin_bootstrap_token(client, engine):
    assert register(client, email="admin@example.com", adminAccessToken=ADMIN_SECRET).status_code == 201
    assert register(client, email="nope@example.com", adminAccessToken="guess").status_code == 201

    with Session(engine) as session:
        admin = session.exec(select(User).where(User.email == "admin@example.com")).one()
        member = session.exec(select(User).where(User.email == "nope@example.com")).one()
    assert admin.role == UserRole.ADMIN
    assert member.role == UserRole.MEMBER


def test_register_uploads_avatar(client, media):
    resp = client.post(
        "/api/auth/register",
        data={"name": "Alice", "email": "alice@example.com", "password": "pw"},
        files={"image": ("me.png", b"\x89PNG", "image/png")},
    )
    assert resp.status_code == 201
    assert len(media.uploads) == 1
    assert media.uploads[0].startswith("users/")

    token = login(client, password="pw")
    user = client.get("/api/auth/profile", headers=bearer(token)).json()["user"]
    assert user["image"] == f"https://media.test/{media.uploads[0]}"


def test_register_rejects_non_image(client, media):
    resp = client.post(
        "/api/auth/register",
        data={"name": "Alice", "email": "alice@example.com", "password": "pw"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )
    assert resp.status_code == 400
    assert media.uploads == []


def test_login_returns_token_with_identity_claims(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    claims = TokenService(JWT_SECRET).verify(body["token"])
    assert claims["email"] == "alice@example.com"
    assert claims["isAdmin"] is False
    assert isinstance(claims["id"], int)


def test_login_unknown_email(client):
    resp = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "x"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "You are not registered user"


def test_login_wrong_password(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_profile_excludes_password(client, alice_token):
    resp = client.get("/api/auth/profile", headers=bearer(alice_token))
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["email"] == "alice@example.com"
    assert user["role"] == "member"
    assert "password_hash" not in user
    assert "password" not in user


def test_profile_requires_token(client):
    resp = client.get("/api/auth/profile")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Unauthorized"


def test_profile_rejects_wrong_scheme(client, alice_token):
    resp = client.get("/api/auth/profile", headers={"Authorization": f"Token {alice_token}"})
    assert resp.status_code == 401


def test_profile_rejects_bad_token(client):
    resp = client.get("/api/auth/profile", headers=bearer("garbage"))
    assert resp.status_code == 401
    assert resp.json()["message"].startswith("Token failed")


def test_profile_for_deleted_user(client, engine, alice_token):
    with Session(engine) as session:
        session.delete(session.exec(select(User)).one())
        session.commit()
    resp = client.get("/api/auth/profile", headers=bearer(alice_token))
    assert resp.status_code == 404


def test_login_token_expires(client):
    register(client)
    fastapi_app.dependency_overrides[get_token_service] = lambda: TokenService(JWT_SECRET, expire_minutes=-1)
    token = login(client)
    del fastapi_app.dependency_overrides[get_token_service]

    resp = client.get("/api/auth/profile", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json()["message"].startswith("Token failed")


def test_token_accepted_before_expiry(client):
    register(client)
    token = TokenService(JWT_SECRET).issue(
        {"email": "alice@example.com", "id": 1, "isAdmin": False}, expires_delta=timedelta(minutes=1)
    )
    assert client.get("/api/auth/profile", headers=bearer(token)).status_code == 200
