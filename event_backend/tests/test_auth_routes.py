import jwt
import psycopg2
import psycopg2.errors
import pytest
from argon2 import PasswordHasher

REGISTER_PAYLOAD = {"name": "Alice", "email": "a@x.com", "password": "secret1"}


def test_register_success(client, mock_db):
    mock_conn, mock_cursor = mock_db

    # No existing user, then RETURNING user_id
    mock_cursor.fetchone.side_effect = [None, {"user_id": 1}]

    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 201
    assert response.get_json()["message"] == "User registered successfully"

    # Verify DB interaction
    args, _ = mock_cursor.execute.call_args
    name, email, pw_hash = args[1]
    assert name == "Alice"
    assert email == "a@x.com"
    assert mock_conn.close.called


def test_register_stores_hash_not_plaintext(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.side_effect = [None, {"user_id": 1}]

    client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    args, _ = mock_cursor.execute.call_args
    pw_hash = args[1][2]
    assert pw_hash != "secret1"
    assert pw_hash.startswith("$argon2")
    assert PasswordHasher().verify(pw_hash, "secret1")


def test_register_normalizes_email(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.side_effect = [None, {"user_id": 1}]

    payload = dict(REGISTER_PAYLOAD, email="  A@X.com ")
    client.post("/api/auth/register", json=payload)

    first_args, _ = mock_cursor.execute.call_args_list[0]
    assert first_args[1] == ("a@x.com",)


def test_register_missing_fields(client, mock_db):
    _, mock_cursor = mock_db

    response = client.post("/api/auth/register", json={})

    assert response.status_code == 400
    fields = {e["field"] for e in response.get_json()["errors"]}
    assert fields == {"name", "email", "password"}
    assert not mock_cursor.execute.called


def test_register_short_password(client, mock_db):
    payload = dict(REGISTER_PAYLOAD, password="12345")

    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    errors = response.get_json()["errors"]
    assert errors == [{"field": "password", "message": "Password must be at least 6 characters"}]


def test_register_invalid_email(client, mock_db):
    payload = dict(REGISTER_PAYLOAD, email="not-an-email")

    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    assert response.get_json()["errors"][0]["field"] == "email"


@pytest.mark.parametrize("body", [["Alice", "a@x.com", "secret1"], "Alice"])
def test_register_body_not_an_object(client, mock_db, body):
    _, mock_cursor = mock_db

    response = client.post("/api/auth/register", json=body)

    assert response.status_code == 400
    assert response.get_json()["message"] == "Request body must be a JSON object"
    assert not mock_cursor.execute.called


def test_register_long_name(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.side_effect = [None, {"user_id": 1}]

    response = client.post("/api/auth/register", json=dict(REGISTER_PAYLOAD, name="A" * 1000))

    assert response.status_code == 201


def test_register_existing_user(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {"user_id": 1}

    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 400
    assert response.get_json()["message"] == "User already exists"
    assert mock_cursor.execute.call_count == 1


def test_register_unique_violation(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None
    mock_cursor.execute.side_effect = [None, psycopg2.errors.UniqueViolation("duplicate key value")]

    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 400
    assert response.get_json()["message"] == "User already exists"


def test_register_database_down(client, mocker):
    mocker.patch(
        "event_backend.auth_service.routes.get_db",
        side_effect=psycopg2.OperationalError("connection refused"),
    )

    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 500
    assert response.get_json()["message"] == "Server error"


def test_login_success(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {
        "user_id": 7,
        "email": "a@x.com",
        "password_hash": PasswordHasher(time_cost=1).hash("secret1"),
    }

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["message"] == "Login successful"

    payload = jwt.decode(data["token"], "test_secret", algorithms=["HS256"])
    assert payload["id"] == 7
    assert payload["email"] == "a@x.com"


def test_login_wrong_password(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {
        "user_id": 7,
        "email": "a@x.com",
        "password_hash": PasswordHasher(time_cost=1).hash("secret1"),
    }

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrongpassword"})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid credentials"


def test_login_unknown_email(client, mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    response = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "secret1"})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid credentials"


def test_login_missing_fields(client, mock_db):
    response = client.post("/api/auth/login", json={})

    assert response.status_code == 400
    fields = {e["field"] for e in response.get_json()["errors"]}
    assert fields == {"email", "password"}


@pytest.mark.parametrize("body", [["a@x.com", "secret1"], "a@x.com"])
def test_login_body_not_an_object(client, mock_db, body):
    _, mock_cursor = mock_db

    response = client.post("/api/auth/login", json=body)

    assert response.status_code == 400
    assert response.get_json()["message"] == "Request body must be a JSON object"
    assert not mock_cursor.execute.called


def test_logout(client):
    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.get_json()["message"] == "Logged out successfully"
