from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from cloud_gateway.db.models import GatewayMesh


def create_mesh(
    db: Session,
    *,
    user_id: uuid.UUID,
    topology: str | None = None,
    device_count: int | None = None,
    status: str | None = None,
) -> GatewayMesh:
    mesh = GatewayMesh(user_id=user_id)
    if topology is not None:
        mesh.topology = topology
    if device_count is not None:
        mesh.device_count = device_count
    if status is not None:
        mesh.status = status
    db.add(mesh)
    db.commit()
    db.refresh(mesh)
    return mesh


def get_mesh_by_id(db: Session, mesh_id: uuid.UUID) -> GatewayMesh | None:
    return db.get(GatewayMesh, mesh_id)


def list_meshes_for_user(
    db: Session,
    user_id: uuid.UUID,
    *,
    status: str | None = None,
) -> list[GatewayMesh]:
    statement = select(GatewayMesh).where(GatewayMesh.user_id == user_id)
    if status is not None:
        statement = statement.where(GatewayMesh.status == status)
    statement = statement.order_by(GatewayMesh.created_at.asc(), GatewayMesh.id.asc())
    return list(db.scalars(statement))


def update_mesh(
    db: Session,
    mesh: GatewayMesh,
    *,
    status: str | None = None,
    device_count: int | None = None,
) -> GatewayMesh:
    if status is not None:
        mesh.status = status
    if device_count is not None:
        mesh.device_count = device_count

    db.add(mesh)
    db.commit()
    db.refresh(mesh)
    return mesh
