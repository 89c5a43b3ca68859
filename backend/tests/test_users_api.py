from fastapi.testclient import TestClient


def test_create_and_get_user(client: TestClient):
    response = client.post(
        "/api/users", json={"email": "Deniz@Example.com", "name": "Deniz", "role": "manager"}
    )

    assert response.status_code == 201
    user = response.json()
    assert user["email"] == "deniz@example.com"
    assert user["role"] == "manager"
    assert user["is_active"] is True

    fetched = client.get(f"/api/users/{user['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Deniz"


def test_duplicate_email_rejected(client: TestClient):
    payload = {"email": "dup@example.com", "name": "Dup"}
    assert client.post("/api/users", json=payload).status_code == 201
    assert client.post("/api/users", json=payload).status_code == 409


def test_invalid_role_and_email(client: TestClient):
    assert client.post("/api/users", json={"email": "x@example.com", "name": "X", "role": "root"}).status_code == 422
    assert client.post("/api/users", json={"email": "not-an-email", "name": "X"}).status_code == 422


def test_missing_user(client: TestClient):
    assert client.get("/api/users/999").status_code == 404


def test_new_manager_gets_elevated_listing(client: TestClient):
    manager = client.post("/api/users", json={"email": "m@example.com", "name": "M", "role": "manager"}).json()
    response = client.get("/api/reservations", headers={"X-User-Id": str(manager["id"])})
    assert response.status_code == 200
    assert response.json() == []
