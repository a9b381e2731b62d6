"""
Shared pytest fixtures: the Flask app wired to in-memory auth and database fakes.
"""

from __future__ import annotations

import io
from typing import Any

import pytest
from PIL import Image

from app import create_app
from pokeblog import Auth, Database
from pokeblog.Auth import AuthUser
from pokeblog.Errors import BackendError


class FakeAuth:
    """Stands in for FirebaseAuth and records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.error: Exception | None = None

    def _answer(self, name: str, *args: Any) -> AuthUser:
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error
        email = args[0] if name != "sign_in_with_google" else "trainer@gmail.com"
        return AuthUser(uid=f"uid-{email}", email=email, id_token="token")

    def sign_up(self, email: str, password: str) -> AuthUser:
        return self._answer("sign_up", email, password)

    def sign_in(self, email: str, password: str) -> AuthUser:
        return self._answer("sign_in", email, password)

    def sign_in_with_google(self, id_token: str, request_uri: str = "") -> AuthUser:
        return self._answer("sign_in_with_google", id_token, request_uri)


class FakeBackend:
    """In-memory users/posts tables and bucket."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.posts: list[dict[str, Any]] = []
        self.uploads: list[tuple[str, bytes, str]] = []
        self.orders: list[list[tuple[str, bool]]] = []
        self.failing: set[str] = set()
        self.created_users = 0

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise BackendError(f"{operation} exploded")

    def find_user_id(self, firebase_uid: str) -> int | None:
        self._check("find_user_id")
        row = self.users.get(firebase_uid)
        return row["id"] if row else None

    def get_profile(self, firebase_uid: str) -> dict[str, Any] | None:
        self._check("get_profile")
        return self.users.get(firebase_uid)

    def create_user(self, firebase_uid: str, email: str) -> int:
        self._check("create_user")
        self.created_users += 1
        row = {"id": len(self.users) + 1, "firebase_uid": firebase_uid, "email": email,
               "username": None, "bio": None}
        self.users[firebase_uid] = row
        return row["id"]

    def ensure_user(self, firebase_uid: str, email: str) -> int:
        user_id = self.find_user_id(firebase_uid)
        if user_id is None:
            user_id = self.create_user(firebase_uid, email)
        return user_id

    def upload_image(self, file_name: str, data: bytes, content_type: str = "") -> str:
        self._check("upload_image")
        self.uploads.append((file_name, data, content_type))
        return f"https://cdn.test/post-images/{file_name}"

    def create_post(self, user_id, title, description, images, pull_date):
        self._check("create_post")
        post = {"id": len(self.posts) + 1, "user_id": user_id, "title": title,
                "description": description, "images": list(images), "pull_date": pull_date,
                "like_count": 0, "comment_count": 0}
        self.posts.append(post)
        return post

    def list_posts(self, order):
        self._check("list_posts")
        self.orders.append(order)
        return list(self.posts)

    def list_user_posts(self, user_id):
        self._check("list_user_posts")
        return [post for post in self.posts if post["user_id"] == user_id]


@pytest.fixture
def fake_auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app(fake_auth: FakeAuth, fake_backend: FakeBackend):
    """Flask app in testing mode with both hosted services faked."""
    application = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "PORT": 3000,
        "FIREBASE_API_KEY": "test-key",
        "SUPABASE_URL": "",
        "SUPABASE_KEY": "",
    })
    application.extensions[Auth.EXTENSION_KEY] = fake_auth
    application.extensions[Database.EXTENSION_KEY] = fake_backend
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client):
    """Test client with an active session for ash@example.com."""
    with client.session_transaction() as sess:
        sess["uid"] = "uid-ash"
        sess["email"] = "ash@example.com"
        sess["id_token"] = "token"
    return client


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny valid PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()
