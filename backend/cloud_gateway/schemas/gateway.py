from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ConnectionProtocol = Literal["sdf-stream", "mqtt-bridge", "grpc-relay"]
ConnectionStatus = Literal["connected", "disconnected", "error"]
MeshTopology = Literal["full-mesh", "star", "ring", "tree"]
MeshStatus = Literal["establishing", "established", "degraded", "dissolved"]


class ConnectionCreateRequest(BaseModel):
    user_id: uuid.UUID
    device_id: str = Field(min_length=1)
    protocol: ConnectionProtocol | None = None
    region: str | None = Field(default=None, min_length=1, max_length=64)
    endpoint: str | None = Field(default=None, min_length=1)
    status: ConnectionStatus | None = None

    @field_validator("device_id", mode="before")
    @classmethod
    def _trim_device_id(cls, value: str) -> str:
        if not isinstance(value, str):
            return value
        trimmed = value.strip()
        if trimmed == "":
            raise ValueError("value must not be empty")
        return trimmed

    @field_validator("region", "endpoint", mode="before")
    @classmethod
    def _trim_optional_text(cls, value: str | None) -> str | None:
        if not isinstance(value, str):
            return value
        trimmed = value.strip()
        return trimmed or None


class ConnectionUpdateRequest(BaseModel):
    status: ConnectionStatus | None = None


class ConnectionHeartbeatRequest(BaseModel):
    seen_at: datetime | None = None


class ConnectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    device_id: str
    protocol: ConnectionProtocol
    region: str
    endpoint: str
    status: ConnectionStatus
    created_at: datetime
    last_seen_at: datetime


class MeshCreateRequest(BaseModel):
    user_id: uuid.UUID
    topology: MeshTopology | None = None
    devices: list[str] | None = None
    device_count: int | None = Field(default=None, ge=0)
    status: MeshStatus | None = None

    @model_validator(mode="after")
    def _device_count_matches_devices(self) -> "MeshCreateRequest":
        if self.devices is not None and self.device_count is not None:
            if self.device_count != len(self.devices):
                raise ValueError("device_count does not match the number of devices")
        return self


class MeshUpdateRequest(BaseModel):
    status: MeshStatus | None = None
    device_count: int | None = Field(default=None, ge=0)


class MeshResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    topology: MeshTopology
    device_count: int
    status: MeshStatus
    created_at: datetime


class SyncLogCreateRequest(BaseModel):
    objects_synced: int | None = Field(default=None, ge=0)
    sdf_bytes: int | None = Field(default=None, ge=0)
    latency_ms: float | None = Field(default=None, ge=0.0)


class SyncLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    connection_id: uuid.UUID
    objects_synced: int
    sdf_bytes: int
    latency_ms: float
    created_at: datetime


class ProtocolInfoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: ConnectionProtocol
    description: str
    latency_ms: float
    throughput_mbps: float


class GatewayStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_connections: int
    connections_by_status: dict[str, int] = Field(default_factory=dict)
    total_syncs: int
    objects_synced: int
    bytes_relayed: int
    avg_latency_ms: float | None = None
    active_meshes: int
