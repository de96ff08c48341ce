import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from campusconnect.auth_service.utils import TOKENS_EXTENSION_KEY, hash_password, verify_password


def _register(client, **overrides):
    payload = {"name": "Ada", "email": "a@x.com", "password": "pw1"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_success(client, mock_db):
    mock_db.users.find_one.return_value = None
    mock_db.users.insert_one.return_value.inserted_id = ObjectId()

    response = _register(client, email=" A@X.com ", college="MIT")

    assert response.status_code == 201
    user = response.get_json()["user"]
    assert user["email"] == "a@x.com"
    assert user["role"] == "student"
    assert user["organizerStatus"] == "none"
    assert user["savedEvents"] == []
    assert "password" not in user

    stored = mock_db.users.insert_one.call_args[0][0]
    assert stored["password"] != "pw1"
    assert verify_password(stored["password"], "pw1")


def test_register_organizer_files_application(client, mock_db):
    mock_db.users.find_one.return_value = None
    mock_db.users.insert_one.return_value.inserted_id = ObjectId()

    response = _register(client, role="organizer")

    assert response.status_code == 201
    user = response.get_json()["user"]
    assert user["role"] == "student"
    assert user["organizerStatus"] == "pending"


def test_register_cannot_self_assign_admin(client, mock_db):
    response = _register(client, role="admin")

    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid role"
    mock_db.users.insert_one.assert_not_called()


def test_register_missing_fields(client):
    response = client.post("/api/auth/register", json={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Name, email and password required"


def test_register_existing_email(client, mock_db):
    mock_db.users.find_one.return_value = {"_id": ObjectId()}

    response = _register(client)

    assert response.status_code == 400
    assert response.get_json()["message"] == "User already exists"
    mock_db.users.insert_one.assert_not_called()


def test_register_duplicate_key_race(client, mock_db):
    mock_db.users.find_one.return_value = None
    mock_db.users.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

    response = _register(client)

    assert response.status_code == 400
    assert response.get_json()["message"] == "User already exists"


def test_register_twice_scenario(client, mock_db):
    mock_db.users.find_one.side_effect = [None, {"_id": ObjectId()}]
    mock_db.users.insert_one.return_value.inserted_id = ObjectId()

    assert _register(client).status_code == 201

    second = _register(client)
    assert second.status_code == 400
    assert second.get_json()["message"] == "User already exists"


def test_register_database_down(client, mock_db):
    mock_db.users.find_one.side_effect = ServerSelectionTimeoutError("no servers")

    response = _register(client)

    assert response.status_code == 500
    assert response.get_json()["message"] == "Server error"


# --- LOGIN ---

@pytest.fixture
def stored_user(make_user):
    return make_user(email="a@x.com", password=hash_password("pw1"))


def test_login_success(app, client, mock_db, stored_user):
    mock_db.users.find_one.return_value = stored_user

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw1"})

    assert response.status_code == 200
    token = response.get_json()["token"]
    identity = app.extensions[TOKENS_EXTENSION_KEY].verify(token)
    assert identity.id == str(stored_user["_id"])
    assert identity.role.value == "student"


def test_login_wrong_password(client, mock_db, stored_user):
    mock_db.users.find_one.return_value = stored_user

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope"})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid Credentials"


def test_login_unknown_email_looks_like_wrong_password(client, mock_db, stored_user):
    mock_db.users.find_one.return_value = stored_user
    wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope"})

    mock_db.users.find_one.return_value = None
    unknown_email = client.post("/api/auth/login", json={"email": "b@x.com", "password": "pw1"})

    assert unknown_email.status_code == wrong_password.status_code == 400
    assert unknown_email.get_json() == wrong_password.get_json()


def test_login_missing_fields(client):
    response = client.post("/api/auth/login", json={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Email and password required"


# --- ME ---

def test_me_returns_identity(client, login_as):
    user, headers = login_as("organizer")

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    data = response.get_json()
    assert data["_id"] == str(user["_id"])
    assert data["role"] == "organizer"
    assert "password" not in data


def test_me_unauthorized(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.get_json()["message"] == "Not authorized, no token"


# --- INPUT TYPES ---

@pytest.mark.parametrize("overrides", [
    {"name": 5},
    {"email": ["a@x.com"]},
    {"password": 123},
    {"college": {"name": "MIT"}},
    {"role": 1},
])
def test_register_rejects_non_string_fields(client, mock_db, overrides):
    response = _register(client, **overrides)

    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid input"
    mock_db.users.insert_one.assert_not_called()


def test_register_rejects_non_object_body(client, mock_db):
    response = client.post("/api/auth/register", json=["a@x.com", "pw1"])

    assert response.status_code == 400
    mock_db.users.insert_one.assert_not_called()


@pytest.mark.parametrize("payload", [
    {"email": "a@x.com", "password": 123},
    {"email": 42, "password": "pw1"},
    ["a@x.com", "pw1"],
])
def test_login_rejects_non_string_credentials(client, mock_db, payload):
    response = client.post("/api/auth/login", json=payload)

    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid input"
    mock_db.users.find_one.assert_not_called()
