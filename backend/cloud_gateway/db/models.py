import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Double,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cloud_gateway.db.base import Base

# Externally owned identity schema; remapped per engine via schema_translate_map.
AUTH_SCHEMA = "auth"

CONNECTION_PROTOCOLS = ("sdf-stream", "mqtt-bridge", "grpc-relay")
CONNECTION_STATUSES = ("connected", "disconnected", "error")
MESH_TOPOLOGIES = ("full-mesh", "star", "ring", "tree")
MESH_STATUSES = ("establishing", "established", "degraded", "dissolved")

DEFAULT_PROTOCOL = "sdf-stream"
DEFAULT_REGION = "us-east-1"
DEFAULT_CONNECTION_STATUS = "connected"
DEFAULT_TOPOLOGY = "full-mesh"
DEFAULT_MESH_STATUS = "established"


class AuthUser(Base):
    """Read-only mapping of the platform's ``auth.users`` table.

    Only the columns the gateway tables need are mapped. Migrations never
    create or alter this table.
    """

    __tablename__ = "users"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)


class GatewayConnection(Base):
    __tablename__ = "gateway_connections"
    __table_args__ = (
        CheckConstraint(
            "protocol IN ('sdf-stream','mqtt-bridge','grpc-relay')",
            name="gateway_connections_protocol_check",
        ),
        CheckConstraint(
            "status IN ('connected','disconnected','error')",
            name="gateway_connections_status_check",
        ),
        Index("idx_gateway_connections_user", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(f"{AUTH_SCHEMA}.users.id"),
        nullable=False,
    )
    device_id: Mapped[str] = mapped_column(Text, nullable=False)
    protocol: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=DEFAULT_PROTOCOL,
    )
    region: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=DEFAULT_REGION,
    )
    endpoint: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=DEFAULT_CONNECTION_STATUS,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    sync_logs: Mapped[list["GatewaySyncLog"]] = relationship(
        back_populates="connection",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="GatewaySyncLog.created_at",
    )


class GatewayMesh(Base):
    __tablename__ = "gateway_meshes"
    __table_args__ = (
        CheckConstraint(
            "topology IN ('full-mesh','star','ring','tree')",
            name="gateway_meshes_topology_check",
        ),
        CheckConstraint(
            "status IN ('establishing','established','degraded','dissolved')",
            name="gateway_meshes_status_check",
        ),
        Index("idx_gateway_meshes_user", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(f"{AUTH_SCHEMA}.users.id"),
        nullable=False,
    )
    topology: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=DEFAULT_TOPOLOGY,
    )
    # maintained by the mesh manager; no membership table backs it
    device_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default="0",
    )
    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=DEFAULT_MESH_STATUS,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class GatewaySyncLog(Base):
    __tablename__ = "gateway_sync_logs"
    __table_args__ = (
        Index("idx_gateway_sync_logs_conn", "connection_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    connection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("gateway_connections.id", ondelete="CASCADE"),
        nullable=False,
    )
    objects_synced: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default="0",
    )
    sdf_bytes: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        server_default="0",
    )
    latency_ms: Mapped[float] = mapped_column(
        Double(),
        nullable=False,
        server_default="0.0",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    connection: Mapped[GatewayConnection] = relationship(back_populates="sync_logs")


GATEWAY_TABLES = (
    GatewayConnection.__table__,
    GatewayMesh.__table__,
    GatewaySyncLog.__table__,
)
