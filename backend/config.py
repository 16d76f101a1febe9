"""
config.py — Environment-driven settings for the CampusShare API.

.env files are read first (project root, then backend/), so real environment
variables always win. The app factory picks a class through config_by_name.

Environment variables:
  SECRET_KEY                 Flask secret
  JWT_SECRET_KEY             access-token signing secret
  JWT_ACCESS_TOKEN_EXPIRES   token lifetime in seconds (default 86400)
  DATABASE_URL               development / production database
  TEST_DATABASE_URL          optional; tests use in-memory SQLite otherwise
  LOG_LEVEL                  root log level
"""

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv


_BACKEND_DIR = Path(__file__).resolve().parent

load_dotenv(_BACKEND_DIR.parent / ".env")
load_dotenv(_BACKEND_DIR / ".env")

_UNSET_SECRET = "dev-only-secret-change-me"


def _env(name: str, default: str) -> str:
    """Empty values count as unset."""
    return os.getenv(name) or default


def _env_seconds(name: str, default: int) -> timedelta:
    raw = _env(name, str(default))
    try:
        return timedelta(seconds=int(raw))
    except ValueError:
        return timedelta(seconds=default)


class BaseConfig:

    SECRET_KEY: str = _env("SECRET_KEY", _UNSET_SECRET)
    JWT_SECRET_KEY: str = _env("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRES: timedelta = _env_seconds("JWT_ACCESS_TOKEN_EXPIRES", 86400)

    BCRYPT_LOG_ROUNDS: int = 12

    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ECHO: bool = False

    LOG_LEVEL: str = _env("LOG_LEVEL", "INFO")


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False

    # Same file the Alembic environment targets by default.
    SQLALCHEMY_DATABASE_URI: str = _env("DATABASE_URL", "sqlite:///campusshare.db")
    LOG_LEVEL: str = _env("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = True

    SQLALCHEMY_DATABASE_URI: str = _env("TEST_DATABASE_URL", "sqlite://")
    JWT_ACCESS_TOKEN_EXPIRES: timedelta = timedelta(minutes=5)
    BCRYPT_LOG_ROUNDS: int = 4
    LOG_LEVEL: str = "WARNING"


class ProductionConfig(BaseConfig):
    DEBUG:   bool = False
    TESTING: bool = False

    # SQLAlchemy only accepts the 'postgresql://' scheme.
    SQLALCHEMY_DATABASE_URI: str = _env("DATABASE_URL", "").replace(
        "postgres://", "postgresql://", 1
    )


def validate_production_config(app) -> None:
    """Raises ValueError naming every production setting still unset."""
    problems = []
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        problems.append("DATABASE_URL is not set")
    for key in ("SECRET_KEY", "JWT_SECRET_KEY"):
        if app.config.get(key) in (None, "", _UNSET_SECRET):
            problems.append(f"{key} is not set")
    if problems:
        raise ValueError("Invalid production configuration: " + "; ".join(problems) + ".")


config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}
