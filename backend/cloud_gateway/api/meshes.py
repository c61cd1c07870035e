from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cloud_gateway.db.session import get_db
from cloud_gateway.repositories.meshes import create_mesh, get_mesh_by_id, list_meshes_for_user, update_mesh
from cloud_gateway.schemas.gateway import MeshCreateRequest, MeshResponse, MeshStatus, MeshUpdateRequest

logger = logging.getLogger("cloud_gateway.api.meshes")

router = APIRouter(prefix="/api/v1/gateway", tags=["gateway-meshes"])


@router.post("/meshes", response_model=MeshResponse, status_code=status.HTTP_201_CREATED)
def post_mesh(
    payload: MeshCreateRequest,
    db: Session = Depends(get_db),
) -> MeshResponse:
    device_count = payload.device_count
    if device_count is None and payload.devices is not None:
        device_count = len(payload.devices)

    try:
        mesh = create_mesh(
            db,
            user_id=payload.user_id,
            topology=payload.topology,
            device_count=device_count,
            status=payload.status,
        )
    except IntegrityError as exc:
        db.rollback()
        logger.warning("gateway mesh rejected user_id=%s: %s", payload.user_id, exc.orig)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Gateway mesh conflict: {exc.orig}",
        )

    logger.info(
        "gateway mesh created id=%s topology=%s device_count=%s",
        mesh.id,
        mesh.topology,
        mesh.device_count,
    )
    return MeshResponse.model_validate(mesh)


@router.get("/meshes", response_model=list[MeshResponse])
def get_meshes(
    user_id: uuid.UUID,
    status_filter: MeshStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[MeshResponse]:
    return [MeshResponse.model_validate(mesh) for mesh in list_meshes_for_user(db, user_id, status=status_filter)]


@router.get("/meshes/{mesh_id}", response_model=MeshResponse)
def get_mesh(
    mesh_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> MeshResponse:
    mesh = get_mesh_by_id(db, mesh_id)
    if mesh is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gateway mesh not found")
    return MeshResponse.model_validate(mesh)


@router.patch("/meshes/{mesh_id}", response_model=MeshResponse)
def patch_mesh(
    mesh_id: uuid.UUID,
    payload: MeshUpdateRequest,
    db: Session = Depends(get_db),
) -> MeshResponse:
    mesh = get_mesh_by_id(db, mesh_id)
    if mesh is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gateway mesh not found")

    updates = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field must be provided",
        )

    updated = update_mesh(
        db,
        mesh,
        status=updates.get("status"),
        device_count=updates.get("device_count"),
    )
    return MeshResponse.model_validate(updated)
