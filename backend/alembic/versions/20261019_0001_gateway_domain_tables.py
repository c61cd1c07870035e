"""gateway domain tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 05:10:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "gateway_connections",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("device_id", sa.Text(), nullable=False),
        sa.Column("protocol", sa.Text(), server_default="sdf-stream", nullable=False),
        sa.Column("region", sa.Text(), server_default="us-east-1", nullable=False),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default="connected", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["auth.users.id"]),
        sa.CheckConstraint(
            "protocol IN ('sdf-stream','mqtt-bridge','grpc-relay')",
            name="gateway_connections_protocol_check",
        ),
        sa.CheckConstraint(
            "status IN ('connected','disconnected','error')",
            name="gateway_connections_status_check",
        ),
        if_not_exists=True,
    )

    op.create_table(
        "gateway_meshes",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("topology", sa.Text(), server_default="full-mesh", nullable=False),
        sa.Column("device_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("status", sa.Text(), server_default="established", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["auth.users.id"]),
        sa.CheckConstraint(
            "topology IN ('full-mesh','star','ring','tree')",
            name="gateway_meshes_topology_check",
        ),
        sa.CheckConstraint(
            "status IN ('establishing','established','degraded','dissolved')",
            name="gateway_meshes_status_check",
        ),
        if_not_exists=True,
    )

    op.create_table(
        "gateway_sync_logs",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("connection_id", sa.Uuid(), nullable=False),
        sa.Column("objects_synced", sa.Integer(), server_default="0", nullable=False),
        sa.Column("sdf_bytes", sa.BigInteger(), server_default="0", nullable=False),
        sa.Column("latency_ms", sa.Double(), server_default="0.0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["connection_id"], ["gateway_connections.id"], ondelete="CASCADE"),
        if_not_exists=True,
    )

    op.create_index(
        "idx_gateway_connections_user",
        "gateway_connections",
        ["user_id"],
        if_not_exists=True,
    )
    op.create_index(
        "idx_gateway_meshes_user",
        "gateway_meshes",
        ["user_id"],
        if_not_exists=True,
    )
    op.create_index(
        "idx_gateway_sync_logs_conn",
        "gateway_sync_logs",
        ["connection_id", "created_at"],
        if_not_exists=True,
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_gateway_sync_logs_conn")
    op.execute("DROP INDEX IF EXISTS idx_gateway_meshes_user")
    op.execute("DROP INDEX IF EXISTS idx_gateway_connections_user")
    op.drop_table("gateway_sync_logs")
    op.drop_table("gateway_meshes")
    op.drop_table("gateway_connections")
