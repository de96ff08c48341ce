import pytest
from unittest.mock import MagicMock

from campusconnect.database.init_db import ensure_indexes, promote_admin
from campusconnect.gateway.config import Config
from campusconnect.gateway.server import create_app


def test_create_app_requires_secret():
    class NoSecret(Config):
        JWT_SECRET = None

    with pytest.raises(RuntimeError):
        create_app(NoSecret, db=MagicMock())


def test_root_and_health(client):
    assert client.get("/").get_json() == {"message": "Welcome to Campus Connect API"}
    assert client.get("/health").get_json() == {"status": "ok"}


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert "message" in response.get_json()


def test_wrong_method_is_json_405(client):
    response = client.patch("/api/events")
    assert response.status_code == 405
    assert "message" in response.get_json()


def test_cors_headers(client):
    response = client.get("/api/events", headers={"Origin": "http://localhost:5173"})
    assert response.headers.get("Access-Control-Allow-Origin") in ("*", "http://localhost:5173")


def test_ensure_indexes():
    db = MagicMock()

    ensure_indexes(db)

    db.users.create_index.assert_any_call("email", unique=True)
    text_index = db.events.create_index.call_args_list[0]
    assert text_index.args[0] == [
        ("title", "text"), ("description", "text"), ("college", "text"), ("category", "text"),
    ]


def test_promote_admin_normalises_email():
    db = MagicMock()

    promote_admin(db, " Admin@X.com ")

    flt, update = db.users.find_one_and_update.call_args[0]
    assert flt == {"email": "admin@x.com"}
    assert update["$set"]["role"] == "admin"


def test_init_db_cli(app, mock_db):
    mock_db.users.find_one_and_update.return_value = {"email": "admin@x.com"}

    result = app.test_cli_runner().invoke(args=["init-db", "--promote-admin", "admin@x.com"])

    assert result.exit_code == 0
    assert "Indexes ensured." in result.output
    assert "Promoted admin@x.com to admin." in result.output
    mock_db.users.create_index.assert_any_call("email", unique=True)
