from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from cloud_gateway.core.config import get_settings
from cloud_gateway.db import models  # noqa: F401
from cloud_gateway.db.base import Base
from cloud_gateway.db.models import AUTH_SCHEMA

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

settings = get_settings()
target_metadata = Base.metadata


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or settings.database_url


def include_object(object_, name, type_, reflected, compare_to) -> bool:
    # auth.users is owned by the platform's auth service
    if type_ == "table" and getattr(object_, "schema", None) == AUTH_SCHEMA:
        return False
    return True


def _schema_translate_map() -> dict[str, str | None] | None:
    if settings.auth_schema == AUTH_SCHEMA:
        return None
    return {AUTH_SCHEMA: settings.auth_schema}


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        {"sqlalchemy.url": _database_url()},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    translate_map = _schema_translate_map()
    with connectable.connect() as connection:
        if translate_map is not None:
            connection = connection.execution_options(schema_translate_map=translate_map)
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
