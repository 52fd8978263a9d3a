import os
from dotenv import load_dotenv
load_dotenv()


def _database_url():
    url = os.getenv("DATABASE_URL", "sqlite:///checklist.db")
    # Heroku/Railway still hand out the old scheme
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class Settings:
    """Base configuration, read from the environment (.env is loaded first)."""

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-key")

    # Upload configuration
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 10 * 1024 * 1024))
    KEEP_UPLOADS = int(os.getenv("KEEP_UPLOADS", 3))

    # Workbook that seeds the questions table at startup; empty disables seeding
    SEED_WORKBOOK = os.getenv("SEED_WORKBOOK", "")

    # Admin credentials
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
    ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "admin-token-123")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    REPORT_TITLE = os.getenv("REPORT_TITLE", "Solid Edge Success Criteria Checklist")


class DevelopmentConfig(Settings):
    DEBUG = True
    TESTING = False


class ProductionConfig(Settings):
    DEBUG = False
    TESTING = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")


class TestingConfig(Settings):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_WORKBOOK = ""
    LOG_LEVEL = "DEBUG"


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
