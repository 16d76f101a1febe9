"""
backend/migrations/env.py — Alembic environment for the CampusShare store.

Reads DATABASE_URL from the environment / backend/.env and points Alembic at
the metadata built from backend.campusshare.models. Every model module is
imported here so autogenerate sees all six tables.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

_BACKEND_DIR = Path(__file__).resolve().parent.parent

load_dotenv(_BACKEND_DIR / ".env")

# The project root (parent of backend/) must be importable for
# `backend.campusshare` to resolve when alembic is run from backend/.
sys.path.insert(0, str(_BACKEND_DIR.parent))

from backend.campusshare.extensions import db  # noqa: E402
from backend.campusshare.models import (  # noqa: E402,F401
    favorite,
    group_membership,
    listing,
    proposal,
    study_group,
    user,
)

target_metadata = db.metadata

db_url = os.getenv("DATABASE_URL", "sqlite:///campusshare.db")

config = context.config
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting (`alembic upgrade --sql`)."""
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=db_url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
