from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from cloud_gateway.db.models import GatewayConnection


def create_connection(
    db: Session,
    *,
    user_id: uuid.UUID,
    device_id: str,
    endpoint: str,
    protocol: str | None = None,
    region: str | None = None,
    status: str | None = None,
) -> GatewayConnection:
    connection = GatewayConnection(user_id=user_id, device_id=device_id, endpoint=endpoint)
    # omitted columns are left to the table defaults
    if protocol is not None:
        connection.protocol = protocol
    if region is not None:
        connection.region = region
    if status is not None:
        connection.status = status
    db.add(connection)
    db.commit()
    db.refresh(connection)
    return connection


def get_connection_by_id(db: Session, connection_id: uuid.UUID) -> GatewayConnection | None:
    return db.get(GatewayConnection, connection_id)


def list_connections_for_user(
    db: Session,
    user_id: uuid.UUID,
    *,
    status: str | None = None,
) -> list[GatewayConnection]:
    statement = select(GatewayConnection).where(GatewayConnection.user_id == user_id)
    if status is not None:
        statement = statement.where(GatewayConnection.status == status)
    statement = statement.order_by(GatewayConnection.created_at.asc(), GatewayConnection.id.asc())
    return list(db.scalars(statement))


def update_connection_status(
    db: Session,
    connection: GatewayConnection,
    *,
    status: str,
) -> GatewayConnection:
    connection.status = status
    db.add(connection)
    db.commit()
    db.refresh(connection)
    return connection


def touch_connection(
    db: Session,
    connection: GatewayConnection,
    *,
    seen_at: datetime | None = None,
) -> GatewayConnection:
    candidate = seen_at or datetime.now(timezone.utc)
    current = connection.last_seen_at
    if current is None or _as_utc(candidate) > _as_utc(current):
        connection.last_seen_at = candidate
        db.add(connection)
        db.commit()
        db.refresh(connection)
    return connection


def delete_connection(db: Session, connection: GatewayConnection) -> None:
    db.delete(connection)
    db.commit()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive UTC timestamps
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
