import logging

from sqlalchemy import MetaData, Table, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.schema import BLANK_SCHEMA

from cloud_gateway.db.base import Base
from cloud_gateway.db.models import AUTH_SCHEMA, GATEWAY_TABLES, AuthUser

logger = logging.getLogger("cloud_gateway.schema")


def create_schema(engine: Engine, *, include_auth: bool = False) -> None:
    """Create the gateway tables and their indexes if they do not exist yet.

    ``auth.users`` belongs to the hosting platform and is only created when
    ``include_auth`` is set, which self-contained databases (SQLite, tests)
    need for the user foreign keys to resolve.

    When the engine translates the auth schema, DDL is emitted from a copy of
    the tables whose ``users`` references already point at the translated
    schema. ``schema_translate_map`` only rewrites names at execution time, and
    SQLite silently drops a foreign key whose target sits in another schema.
    """
    metadata, tables = _schema_tables(engine, include_auth=include_auth)
    metadata.create_all(bind=engine, tables=tables, checkfirst=True)
    logger.info("gateway schema ensured tables=%s", ",".join(table.name for table in tables))


def missing_gateway_tables(engine: Engine) -> list[str]:
    existing = set(inspect(engine).get_table_names())
    return [table.name for table in GATEWAY_TABLES if table.name not in existing]


def _schema_tables(engine: Engine, *, include_auth: bool) -> tuple[MetaData, list[Table]]:
    translate_map = engine.get_execution_options().get("schema_translate_map") or {}
    if AUTH_SCHEMA not in translate_map:
        tables = list(GATEWAY_TABLES)
        if include_auth:
            tables.insert(0, AuthUser.__table__)
        return Base.metadata, tables

    auth_schema = translate_map[AUTH_SCHEMA]

    def _referred_schema(table, to_schema, constraint, referred_schema):
        if referred_schema != AUTH_SCHEMA:
            return referred_schema
        return BLANK_SCHEMA if auth_schema is None else auth_schema

    metadata = MetaData()
    # users must be present in the copy for the foreign keys to resolve
    users = AuthUser.__table__.to_metadata(metadata, schema=auth_schema)
    tables = [table.to_metadata(metadata, referred_schema_fn=_referred_schema) for table in GATEWAY_TABLES]
    if include_auth:
        tables.insert(0, users)
    return metadata, tables
