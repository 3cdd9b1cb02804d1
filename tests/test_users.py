from fastapi.testclient import TestClient

from storefront.models.users import Role, User


def _payload(**overrides):
    data = {"name": "Staff", "email": "staff@example.com", "password": "staffpassword", "role": "user"}
    data.update(overrides)
    return data


def test_list_users(client: TestClient, admin_headers, regular_user):
    response = client.get("/users", headers=admin_headers)
    assert response.status_code == 200
    emails = [u["email"] for u in response.json()["data"]]
    assert emails == ["admin@example.com", "user@example.com"]


def test_list_users_filtered_by_role(client: TestClient, admin_headers, regular_user):
    response = client.get("/users", headers=admin_headers, params={"role": "user"})
    assert [u["email"] for u in response.json()["data"]] == ["user@example.com"]


def test_create_user_with_role(client: TestClient, db, admin_headers):
    response = client.post("/users", headers=admin_headers, json=_payload(role="admin"))
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "admin"
    assert db.query(User).filter(User.email == "staff@example.com").one().role == Role.ADMIN


def test_create_user_rejects_unknown_role(client: TestClient, db, admin_headers):
    response = client.post("/users", headers=admin_headers, json=_payload(role="superuser"))
    assert response.status_code == 422
    assert "role" in response.json()["errors"]
    assert db.query(User).count() == 1


def test_create_user_rejects_taken_email(client: TestClient, admin_headers, regular_user):
    response = client.post("/users", headers=admin_headers, json=_payload(email="user@example.com"))
    assert response.status_code == 422
    assert "email" in response.json()["errors"]


def test_create_user_rejects_invalid_email(client: TestClient, admin_headers):
    response = client.post("/users", headers=admin_headers, json=_payload(email="not-an-email"))
    assert response.status_code == 422
    assert "email" in response.json()["errors"]


def test_show_user(client: TestClient, admin_headers, regular_user):
    response = client.get(f"/users/{regular_user.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Regular"


def test_show_missing_user(client: TestClient, admin_headers):
    assert client.get("/users/999", headers=admin_headers).status_code == 404


def test_update_user_keeping_own_email(client: TestClient, db, admin_headers, regular_user):
    response = client.put(f"/users/{regular_user.id}", headers=admin_headers, json={
        "name": "Promoted",
        "email": "user@example.com",
        "role": "admin",
    })
    assert response.status_code == 200
    db.refresh(regular_user)
    assert regular_user.name == "Promoted"
    assert regular_user.role == Role.ADMIN


def test_update_user_rejects_email_of_another_user(client: TestClient, admin_headers, regular_user):
    response = client.put(f"/users/{regular_user.id}", headers=admin_headers, json={
        "name": "Regular",
        "email": "admin@example.com",
        "role": "user",
    })
    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["The email has already been taken."]


def test_sole_admin_cannot_demote_themselves(client: TestClient, db, admin_headers, admin_user):
    response = client.put(f"/users/{admin_user.id}", headers=admin_headers, json={
        "name": "Admin",
        "email": "admin@example.com",
        "role": "user",
    })
    assert response.status_code == 409
    db.refresh(admin_user)
    assert admin_user.role == Role.ADMIN


def test_admin_can_demote_another_admin(client: TestClient, admin_headers):
    created = client.post("/users", headers=admin_headers, json=_payload(role="admin")).json()["user"]
    response = client.put(f"/users/{created['id']}", headers=admin_headers, json={
        "name": "Staff",
        "email": "staff@example.com",
        "role": "user",
    })
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "user"


def test_admin_cannot_delete_themselves(client: TestClient, db, admin_headers, admin_user):
    response = client.delete(f"/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 409
    assert db.query(User).count() == 1


def test_delete_user(client: TestClient, db, admin_headers, regular_user):
    response = client.delete(f"/users/{regular_user.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "User deleted successfully"}
    assert db.query(User).filter(User.email == "user@example.com").first() is None


def test_admin_can_delete_another_admin(client: TestClient, db, admin_headers, admin_user):
    created = client.post("/users", headers=admin_headers, json=_payload(role="admin")).json()["user"]

    response = client.delete(f"/users/{created['id']}", headers=admin_headers)

    assert response.status_code == 200
    admins = db.query(User).filter(User.role == Role.ADMIN).all()
    assert [u.id for u in admins] == [admin_user.id]
