from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cloud_gateway.db.models import (
    CONNECTION_STATUSES,
    GatewayConnection,
    GatewayMesh,
    GatewaySyncLog,
)


@dataclass(frozen=True)
class GatewayStats:
    total_connections: int
    connections_by_status: dict[str, int] = field(default_factory=dict)
    total_syncs: int = 0
    objects_synced: int = 0
    bytes_relayed: int = 0
    avg_latency_ms: float | None = None
    active_meshes: int = 0


def get_gateway_stats(db: Session, *, user_id: uuid.UUID | None = None) -> GatewayStats:
    connection_rows = db.execute(
        _scoped(
            select(GatewayConnection.status, func.count(GatewayConnection.id)).group_by(
                GatewayConnection.status
            ),
            GatewayConnection.user_id,
            user_id,
        )
    ).all()
    by_status = {status: 0 for status in CONNECTION_STATUSES}
    for status, count in connection_rows:
        by_status[status] = int(count)

    sync_statement = select(
        func.count(GatewaySyncLog.id),
        func.coalesce(func.sum(GatewaySyncLog.objects_synced), 0),
        func.coalesce(func.sum(GatewaySyncLog.sdf_bytes), 0),
        func.avg(GatewaySyncLog.latency_ms),
    )
    if user_id is not None:
        sync_statement = sync_statement.join(
            GatewayConnection,
            GatewayConnection.id == GatewaySyncLog.connection_id,
        ).where(GatewayConnection.user_id == user_id)
    sync_count, objects_synced, bytes_relayed, avg_latency = db.execute(sync_statement).one()

    active_meshes = db.scalar(
        _scoped(
            select(func.count(GatewayMesh.id)).where(GatewayMesh.status != "dissolved"),
            GatewayMesh.user_id,
            user_id,
        )
    )

    return GatewayStats(
        total_connections=sum(by_status.values()),
        connections_by_status=by_status,
        total_syncs=int(sync_count or 0),
        objects_synced=int(objects_synced or 0),
        bytes_relayed=int(bytes_relayed or 0),
        avg_latency_ms=float(avg_latency) if avg_latency is not None else None,
        active_meshes=int(active_meshes or 0),
    )


def _scoped(statement, column, user_id: uuid.UUID | None):
    if user_id is None:
        return statement
    return statement.where(column == user_id)
