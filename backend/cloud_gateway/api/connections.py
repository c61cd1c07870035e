from __future__ import annotations

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cloud_gateway.core.config import Settings
from cloud_gateway.db.models import DEFAULT_REGION, GatewayConnection
from cloud_gateway.db.session import get_db
from cloud_gateway.dependencies import get_settings_from_app
from cloud_gateway.repositories.connections import (
    create_connection,
    delete_connection,
    get_connection_by_id,
    list_connections_for_user,
    touch_connection,
    update_connection_status,
)
from cloud_gateway.repositories.sync_logs import create_sync_log, list_sync_logs_for_connection
from cloud_gateway.schemas.gateway import (
    ConnectionCreateRequest,
    ConnectionHeartbeatRequest,
    ConnectionResponse,
    ConnectionStatus,
    ConnectionUpdateRequest,
    SyncLogCreateRequest,
    SyncLogResponse,
)

logger = logging.getLogger("cloud_gateway.api.connections")

router = APIRouter(prefix="/api/v1/gateway", tags=["gateway-connections"])


@router.post("/connections", response_model=ConnectionResponse, status_code=status.HTTP_201_CREATED)
def post_connection(
    payload: ConnectionCreateRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_from_app),
) -> ConnectionResponse:
    endpoint = payload.endpoint or _default_endpoint(settings, payload.region)
    try:
        connection = create_connection(
            db,
            user_id=payload.user_id,
            device_id=payload.device_id,
            endpoint=endpoint,
            protocol=payload.protocol,
            region=payload.region,
            status=payload.status,
        )
    except IntegrityError as exc:
        db.rollback()
        logger.warning("gateway connection rejected user_id=%s: %s", payload.user_id, exc.orig)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Gateway connection conflict: {exc.orig}",
        )

    logger.info(
        "gateway connection created id=%s device_id=%s protocol=%s",
        connection.id,
        connection.device_id,
        connection.protocol,
    )
    return ConnectionResponse.model_validate(connection)


@router.get("/connections", response_model=list[ConnectionResponse])
def get_connections(
    user_id: uuid.UUID,
    status_filter: ConnectionStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[ConnectionResponse]:
    connections = list_connections_for_user(db, user_id, status=status_filter)
    return [ConnectionResponse.model_validate(connection) for connection in connections]


@router.get("/connections/{connection_id}", response_model=ConnectionResponse)
def get_connection(
    connection_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> ConnectionResponse:
    return ConnectionResponse.model_validate(_require_connection(db, connection_id))


@router.patch("/connections/{connection_id}", response_model=ConnectionResponse)
def patch_connection(
    connection_id: uuid.UUID,
    payload: ConnectionUpdateRequest,
    db: Session = Depends(get_db),
) -> ConnectionResponse:
    connection = _require_connection(db, connection_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("status") is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field must be provided",
        )

    updated = update_connection_status(db, connection, status=updates["status"])
    return ConnectionResponse.model_validate(updated)


@router.post("/connections/{connection_id}/heartbeat", response_model=ConnectionResponse)
def post_connection_heartbeat(
    connection_id: uuid.UUID,
    payload: ConnectionHeartbeatRequest | None = None,
    db: Session = Depends(get_db),
) -> ConnectionResponse:
    connection = _require_connection(db, connection_id)
    seen_at = payload.seen_at if payload is not None else None
    return ConnectionResponse.model_validate(touch_connection(db, connection, seen_at=seen_at))


@router.delete("/connections/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_connection_endpoint(
    connection_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> Response:
    connection = _require_connection(db, connection_id)
    delete_connection(db, connection)
    logger.info("gateway connection deleted id=%s", connection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/connections/{connection_id}/sync-logs",
    response_model=SyncLogResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_sync_log(
    connection_id: uuid.UUID,
    payload: SyncLogCreateRequest,
    db: Session = Depends(get_db),
) -> SyncLogResponse:
    _require_connection(db, connection_id)
    try:
        log = create_sync_log(
            db,
            connection_id=connection_id,
            objects_synced=payload.objects_synced,
            sdf_bytes=payload.sdf_bytes,
            latency_ms=payload.latency_ms,
        )
    except IntegrityError as exc:
        # connection removed between lookup and insert
        db.rollback()
        logger.warning("sync log rejected connection_id=%s: %s", connection_id, exc.orig)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Sync log conflict: {exc.orig}",
        )
    return SyncLogResponse.model_validate(log)


@router.get("/connections/{connection_id}/sync-logs", response_model=list[SyncLogResponse])
def get_sync_logs(
    connection_id: uuid.UUID,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_from_app),
) -> list[SyncLogResponse]:
    _require_connection(db, connection_id)
    if since is not None and until is not None and since >= until:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="'since' must be before 'until'",
        )

    effective_limit = min(limit or settings.sync_log_default_limit, settings.sync_log_max_limit)
    logs = list_sync_logs_for_connection(
        db,
        connection_id,
        since=since,
        until=until,
        limit=effective_limit,
    )
    return [SyncLogResponse.model_validate(log) for log in logs]


def _require_connection(db: Session, connection_id: uuid.UUID) -> GatewayConnection:
    connection = get_connection_by_id(db, connection_id)
    if connection is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gateway connection not found")
    return connection


def _default_endpoint(settings: Settings, region: str | None) -> str:
    return settings.gateway_endpoint_template.format(region=region or DEFAULT_REGION)
