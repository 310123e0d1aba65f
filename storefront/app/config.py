import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///storefront.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # Comma-separated list
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Seconds a visitor's cart/session may sit unused before it is dropped
    STOREFRONT_IDLE_TIMEOUT = int(os.getenv("STOREFRONT_IDLE_TIMEOUT", "3600"))
    STOREFRONT_SWEEP_INTERVAL = int(os.getenv("STOREFRONT_SWEEP_INTERVAL", "60"))
    SEARCH_LIMIT = int(os.getenv("SEARCH_LIMIT", "24"))

    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8080"))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
