import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from conftest import ADMIN_EMAIL, PASSWORD, USER_EMAIL, sign_in

from storefront.app.extensions import db
from storefront.app.models import Account
from storefront.core.identity import MISSING, StoreNetworkError, StorePermissionError
from storefront.modules.auth import profiles


def test_anonymous_session(client):
    r = client.get("/api/auth/session")
    assert r.status_code == 200
    assert r.json["session"] == {"is_authenticated": False, "is_admin": False, "role_pending": False}
    assert r.json["user"] is None


def test_sign_in_as_user(client):
    r = sign_in(client)
    assert r.status_code == 200
    assert r.json["session"]["is_authenticated"] is True
    assert r.json["session"]["is_admin"] is False
    assert r.json["user"]["email"] == USER_EMAIL


def test_sign_in_as_admin(client):
    r = sign_in(client, ADMIN_EMAIL)
    assert r.json["session"] == {"is_authenticated": True, "is_admin": True, "role_pending": False}


def test_bad_credentials(client):
    r = sign_in(client, USER_EMAIL, "wrong")
    assert r.status_code == 401
    assert r.json["error"]["code"] == "unauthorized"
    assert client.get("/api/auth/session").json["session"]["is_authenticated"] is False


def test_sign_out(admin_client):
    r = admin_client.post("/api/auth/signout")
    assert r.json["session"]["is_authenticated"] is False
    assert r.json["session"]["is_admin"] is False


def test_signup_creates_plain_user_and_signs_in(app, client):
    r = client.post("/api/auth/signup", json={"email": "New@Test.com", "password": "abcd1234", "role": "admin"})
    assert r.status_code == 201
    assert r.json["session"]["is_authenticated"] is True
    assert r.json["session"]["is_admin"] is False
    assert r.json["user"]["email"] == "new@test.com"

    with app.app_context():
        assert Account.query.filter_by(email="new@test.com").one().role == "user"


def test_signup_validation(client):
    assert client.post("/api/auth/signup", json={"email": "nope", "password": "abcd1234"}).status_code == 400
    r = client.post("/api/auth/signup", json={"email": "a@b.com", "password": "short"})
    assert r.status_code == 400
    assert r.json["error"]["details"]["password"]
    r = client.post("/api/auth/signup", json={"email": USER_EMAIL, "password": PASSWORD})
    assert r.status_code == 409
    r = client.post("/api/auth/signup", json={"email": "a@b.com"})
    assert r.json["error"]["details"]["missing"] == ["password"]


def test_role_change_applies_on_next_sign_in(app, client):
    sign_in(client)
    with app.app_context():
        Account.query.filter_by(email=USER_EMAIL).one().role = "admin"
        db.session.commit()

    assert client.get("/api/auth/session").json["session"]["is_admin"] is False
    sign_in(client)
    assert client.get("/api/auth/session").json["session"]["is_admin"] is True


def test_sign_in_is_restored_after_registry_eviction(app, client):
    sign_in(client, ADMIN_EMAIL)
    with client.session_transaction() as s:
        sid = s["storefront_id"]
    app.extensions["storefront"].discard(sid)

    r = client.get("/api/auth/session")
    assert r.json["session"]["is_admin"] is True


class _FailingSession:
    def __init__(self, error):
        self.error = error

    def get(self, *args, **kwargs):
        raise self.error


class _FailingDb:
    def __init__(self, error):
        self.session = _FailingSession(error)


@pytest.mark.parametrize(
    "error",
    [
        OperationalError("SELECT accounts", {}, Exception("database is down")),
        SQLAlchemyError("driver exploded"),
    ],
)
def test_admin_sign_in_fails_closed_when_profile_read_fails(client, monkeypatch, caplog, error):
    monkeypatch.setattr(profiles, "db", _FailingDb(error))

    r = sign_in(client, ADMIN_EMAIL)
    assert r.status_code == 200
    assert r.json["session"]["is_authenticated"] is True
    assert r.json["session"]["is_admin"] is False
    assert r.json["session"]["role_pending"] is False

    r = client.get("/api/auth/session")
    assert r.status_code == 200
    assert r.json["session"]["is_admin"] is False
    assert r.json["user"]["email"] == ADMIN_EMAIL
    assert client.get("/admin/dashboard").status_code == 404
    assert "role lookup failed" in caplog.text


def test_profile_store_documents(app):
    store = profiles.AccountProfileStore()
    with app.app_context():
        admin_id = Account.query.filter_by(email=ADMIN_EMAIL).one().id

        doc = store.get_document("users", str(admin_id))
        assert doc.exists
        assert doc.data() == {"email": ADMIN_EMAIL, "role": "admin"}

        assert store.get_document("users", "abc") is MISSING
        assert store.get_document("users", None) is MISSING
        assert store.get_document("users", "9999") is MISSING

        with pytest.raises(StorePermissionError):
            store.get_document("orders", str(admin_id))


def test_profile_store_maps_database_errors(app, monkeypatch):
    store = profiles.AccountProfileStore()
    with app.app_context():
        monkeypatch.setattr(profiles, "db", _FailingDb(OperationalError("SELECT", {}, Exception("down"))))
        with pytest.raises(StoreNetworkError):
            store.get_document("users", "1")

        monkeypatch.setattr(profiles, "db", _FailingDb(SQLAlchemyError("boom")))
        with pytest.raises(StoreNetworkError, match="SQLAlchemyError"):
            store.get_document("users", "1")
