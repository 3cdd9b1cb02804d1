import pytest
from fastapi.testclient import TestClient

from storefront.errors import AuthenticationRequired, AuthorizationDenied
from storefront.models.users import Role, User
from storefront.services.gate import Access, authorize


def _identity(role):
    return User(id=1, name="x", email="x@example.com", password_hash="-", role=role)


def test_public_allows_anonymous():
    assert authorize(None, Access.PUBLIC) is None


def test_authenticated_requires_identity():
    with pytest.raises(AuthenticationRequired):
        authorize(None, Access.AUTHENTICATED)


def test_admin_route_anonymous_is_unauthenticated_not_forbidden():
    with pytest.raises(AuthenticationRequired):
        authorize(None, Access.ADMIN)


def test_admin_route_with_user_role_is_forbidden():
    with pytest.raises(AuthorizationDenied):
        authorize(_identity(Role.USER), Access.ADMIN)


@pytest.mark.parametrize("access", [Access.PUBLIC, Access.AUTHENTICATED, Access.ADMIN])
def test_admin_passes_everything(access):
    admin = _identity(Role.ADMIN)
    assert authorize(admin, access) is admin


def test_user_passes_authenticated_routes():
    user = _identity(Role.USER)
    assert authorize(user, Access.AUTHENTICATED) is user


# ---- route policy ----

def test_product_listing_is_public(client: TestClient, category):
    response = client.get("/products")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_product_listing_ignores_garbage_token(client: TestClient):
    response = client.get("/products", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 200


@pytest.mark.parametrize("path", ["/products/1", "/categories", "/categories/1", "/user"])
def test_protected_reads_require_authentication(client: TestClient, path):
    response = client.get(path)
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Unauthenticated."}
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token_is_unauthenticated(client: TestClient):
    response = client.get("/categories", headers={"Authorization": "Bearer abc.def.ghi"})
    assert response.status_code == 401


def test_token_of_deleted_user_is_unauthenticated(client: TestClient, db, user_headers, regular_user):
    db.delete(regular_user)
    db.commit()
    response = client.get("/categories", headers=user_headers)
    assert response.status_code == 401


MUTATIONS = [
    ("post", "/categories", {"json": {"category_name": "New"}}),
    ("put", "/categories/1", {"json": {"category_name": "New"}}),
    ("delete", "/categories/1", {}),
    ("post", "/products", {"data": {"product_name": "P", "price": "1", "in_stock": "1", "category_id": "1"}}),
    ("put", "/products/1", {"data": {"product_name": "P", "price": "1", "in_stock": "1", "category_id": "1"}}),
    ("delete", "/products/1", {}),
    ("get", "/users", {}),
    ("post", "/users", {"json": {"name": "N", "email": "n@example.com", "password": "password1", "role": "user"}}),
    ("get", "/users/1", {}),
    ("put", "/users/1", {"json": {"name": "N", "email": "n@example.com", "role": "user"}}),
    ("delete", "/users/1", {}),
    ("get", "/logs", {}),
]


@pytest.mark.parametrize("method,path,kwargs", MUTATIONS)
def test_non_admin_is_forbidden(client: TestClient, user_headers, external_product, method, path, kwargs):
    response = getattr(client, method)(path, headers=user_headers, **kwargs)
    assert response.status_code == 403
    assert response.json()["success"] is False


@pytest.mark.parametrize("method,path,kwargs", MUTATIONS)
def test_anonymous_admin_routes_are_unauthenticated(client: TestClient, external_product, method, path, kwargs):
    response = getattr(client, method)(path, **kwargs)
    assert response.status_code == 401


def test_forbidden_does_not_reveal_missing_resources(client: TestClient, user_headers):
    # Same answer whether or not product 999 exists
    response = client.delete("/products/999", headers=user_headers)
    assert response.status_code == 403


def test_user_role_can_read_catalogue(client: TestClient, user_headers, external_product):
    assert client.get(f"/products/{external_product.id}", headers=user_headers).status_code == 200
    assert client.get("/categories", headers=user_headers).status_code == 200
    assert client.get(f"/categories/{external_product.category_id}", headers=user_headers).status_code == 200
