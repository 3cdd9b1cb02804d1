import json

import httpx
import pytest

from storefront.client import ApiError, AuthSession, Identity, StorefrontClient, ViewGuard

ADMIN = {"id": 1, "name": "Admin", "email": "admin@example.com", "role": "admin"}
USER = {"id": 2, "name": "Regular", "email": "user@example.com", "role": "user"}


def _client(handler, session=None):
    return StorefrontClient("http://api.test", session=session, transport=httpx.MockTransport(handler))


def _signed_in(user, token="tok"):
    session = AuthSession()
    session.start(token, user)
    return session


# ---- API client ----

def test_login_starts_session():
    def handler(request):
        assert request.url.path == "/login"
        assert json.loads(request.content) == {"email": "admin@example.com", "password": "secret123"}
        return httpx.Response(200, json={"access_token": "abc", "token_type": "bearer", "user": ADMIN})

    client = _client(handler)
    user = client.login("admin@example.com", "secret123")

    assert user["role"] == "admin"
    assert client.session.token == "abc"
    assert client.session.identity.is_admin


def test_bearer_token_is_sent():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"success": True, "data": []})

    _client(handler, _signed_in(USER, "xyz")).list_categories()
    assert seen["auth"] == "Bearer xyz"


def test_failed_login_keeps_session_empty():
    def handler(request):
        return httpx.Response(401, json={"success": False, "message": "Invalid credentials."})

    client = _client(handler)
    with pytest.raises(ApiError) as exc:
        client.login("admin@example.com", "wrong")
    assert exc.value.status_code == 401
    assert exc.value.message == "Invalid credentials."
    assert not client.session.is_authenticated


def test_unauthenticated_response_clears_session():
    def handler(request):
        return httpx.Response(401, json={"success": False, "message": "Unauthenticated."})

    client = _client(handler, _signed_in(USER))
    with pytest.raises(ApiError):
        client.get_product(1)
    assert client.session.token is None
    assert client.session.identity is None


def test_forbidden_keeps_session():
    def handler(request):
        return httpx.Response(403, json={"success": False, "message": "Forbidden."})

    client = _client(handler, _signed_in(USER))
    with pytest.raises(ApiError) as exc:
        client.delete_product(1)
    assert exc.value.status_code == 403
    assert client.session.is_authenticated


def test_validation_errors_are_exposed_per_field():
    def handler(request):
        return httpx.Response(422, json={
            "success": False,
            "message": "The given data was invalid.",
            "errors": {"category_id": ["The selected category id is invalid."]},
        })

    client = _client(handler, _signed_in(ADMIN))
    with pytest.raises(ApiError) as exc:
        client.create_product({"product_name": "P", "price": 1, "in_stock": 1, "category_id": 9})
    assert exc.value.field_errors("category_id") == ["The selected category id is invalid."]
    assert exc.value.field_errors("price") == []


def test_create_product_sends_multipart_upload():
    seen = {}

    def handler(request):
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.read()
        return httpx.Response(201, json={"success": True, "message": "ok", "product": {"id": 5}})

    client = _client(handler, _signed_in(ADMIN))
    product = client.create_product(
        {"product_name": "Widget", "price": 9.99, "in_stock": 5, "category_id": 1, "description": None},
        image=("widget.jpg", b"\xff\xd8\xff", "image/jpeg"),
    )

    assert product == {"id": 5}
    assert seen["content_type"].startswith("multipart/form-data")
    assert b'name="product_name"' in seen["body"]
    assert b'filename="widget.jpg"' in seen["body"]
    assert b'name="description"' not in seen["body"]


def test_update_product_with_image_url():
    seen = {}

    def handler(request):
        seen["body"] = request.read().decode()
        return httpx.Response(200, json={"success": True, "message": "ok", "product": {"id": 5}})

    _client(handler, _signed_in(ADMIN)).update_product(
        5, {"product_name": "Widget", "price": 1, "in_stock": 1, "category_id": 1},
        image_url="https://cdn.example.com/a.webp",
    )
    assert "image_url=https%3A%2F%2Fcdn.example.com%2Fa.webp" in seen["body"]


def test_logout_clears_session_even_on_error():
    def handler(request):
        return httpx.Response(500, json={"success": False, "message": "boom"})

    client = _client(handler, _signed_in(USER))
    with pytest.raises(ApiError):
        client.logout()
    assert not client.session.is_authenticated


def test_unreachable_server_raises_api_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ApiError) as exc:
        _client(handler).list_products()
    assert exc.value.status_code == 0


# ---- view guard ----

def test_anonymous_sees_only_public_views():
    guard = ViewGuard(AuthSession())
    assert guard.can_view("products")
    assert guard.check("product_detail").redirect == "/login"
    assert guard.check("admin.users").redirect == "/login"
    assert set(guard.visible_views()) == {"login", "register", "products"}


def test_user_cannot_open_admin_views():
    guard = ViewGuard(_signed_in(USER))
    assert guard.can_view("categories")
    assert guard.can_view("profile")
    decision = guard.check("admin.products")
    assert not decision.allowed
    assert decision.redirect == "/products"


def test_admin_sees_everything():
    guard = ViewGuard(_signed_in(ADMIN))
    assert all(guard.can_view(view) for view in guard.view_access)


def test_unknown_view_is_denied():
    guard = ViewGuard(_signed_in(ADMIN))
    assert guard.check("settings.secret").allowed is False


def test_unknown_role_gets_no_privileges():
    session = _signed_in({**USER, "role": "superuser"})
    assert session.identity.role is None
    guard = ViewGuard(session)
    assert guard.can_view("products")
    assert not guard.can_view("categories")
    assert not guard.can_view("admin.users")


def test_identity_from_payload():
    identity = Identity.from_payload(ADMIN)
    assert identity.user_id == 1
    assert identity.is_admin
