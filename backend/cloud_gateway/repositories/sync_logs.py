from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cloud_gateway.db.models import GatewaySyncLog


def create_sync_log(
    db: Session,
    *,
    connection_id: uuid.UUID,
    objects_synced: int | None = None,
    sdf_bytes: int | None = None,
    latency_ms: float | None = None,
) -> GatewaySyncLog:
    log = GatewaySyncLog(connection_id=connection_id)
    if objects_synced is not None:
        log.objects_synced = objects_synced
    if sdf_bytes is not None:
        log.sdf_bytes = sdf_bytes
    if latency_ms is not None:
        log.latency_ms = latency_ms
    db.add(log)
    db.commit()
    db.refresh(log)
    return log


def list_sync_logs_for_connection(
    db: Session,
    connection_id: uuid.UUID,
    *,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int | None = None,
) -> list[GatewaySyncLog]:
    statement = select(GatewaySyncLog).where(GatewaySyncLog.connection_id == connection_id)
    if since is not None:
        statement = statement.where(GatewaySyncLog.created_at >= since)
    if until is not None:
        statement = statement.where(GatewaySyncLog.created_at < until)
    # matches idx_gateway_sync_logs_conn (connection_id, created_at)
    statement = statement.order_by(GatewaySyncLog.created_at.asc(), GatewaySyncLog.id.asc())
    if limit is not None:
        statement = statement.limit(limit)
    return list(db.scalars(statement))


def count_sync_logs_for_connection(db: Session, connection_id: uuid.UUID) -> int:
    return int(
        db.scalar(
            select(func.count(GatewaySyncLog.id)).where(GatewaySyncLog.connection_id == connection_id)
        )
        or 0
    )
