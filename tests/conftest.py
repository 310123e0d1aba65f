import pytest
from werkzeug.security import generate_password_hash

from storefront.app.config import TestConfig
from storefront.app.extensions import db
from storefront.app.factory import create_app
from storefront.app.models import Account, Product

ADMIN_EMAIL = "admin@test.com"
USER_EMAIL = "user@test.com"
PASSWORD = "Test1234!"


@pytest.fixture()
def app():
    # Use in-memory SQLite in tests for simplicity.
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        db.session.add_all([
            Account(email=ADMIN_EMAIL, password_hash=generate_password_hash(PASSWORD), display_name="Admin", role="admin"),
            Account(email=USER_EMAIL, password_hash=generate_password_hash(PASSWORD), display_name="User", role="user"),
            Product(name="Product 1", description="Desc 1", category="Shirts", price_cents=1000),
            Product(name="Product 2", description="Desc 2", category="Shoes", price_cents=350),
        ])
        db.session.commit()

    yield app

    app.extensions["storefront"].close()
    with app.app_context():
        db.drop_all()


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture()
def product_ids(app):
    with app.app_context():
        return {p.name: p.id for p in Product.query.all()}


def sign_in(client, email=USER_EMAIL, password=PASSWORD):
    return client.post("/api/auth/signin", json={"email": email, "password": password})


@pytest.fixture()
def user_client(client):
    assert sign_in(client).status_code == 200
    return client


@pytest.fixture()
def admin_client(client):
    assert sign_in(client, ADMIN_EMAIL).status_code == 200
    return client
