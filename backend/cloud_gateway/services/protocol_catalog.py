from __future__ import annotations

from dataclasses import dataclass

from cloud_gateway.db.models import CONNECTION_PROTOCOLS


@dataclass(frozen=True)
class ProtocolInfo:
    name: str
    description: str
    latency_ms: float
    throughput_mbps: float


# Nominal figures advertised to clients; not measured.
_PROTOCOLS: tuple[ProtocolInfo, ...] = (
    ProtocolInfo(
        name="sdf-stream",
        description="SDF delta streaming for spatial data sync",
        latency_ms=8.0,
        throughput_mbps=100.0,
    ),
    ProtocolInfo(
        name="mqtt-bridge",
        description="MQTT to SDF protocol bridge for IoT devices",
        latency_ms=15.0,
        throughput_mbps=10.0,
    ),
    ProtocolInfo(
        name="grpc-relay",
        description="gRPC relay for microservice communication",
        latency_ms=5.0,
        throughput_mbps=500.0,
    ),
)


class ProtocolCatalogService:
    def __init__(self, protocols: tuple[ProtocolInfo, ...] = _PROTOCOLS):
        unknown = [item.name for item in protocols if item.name not in CONNECTION_PROTOCOLS]
        if unknown:
            raise ValueError(f"Unsupported protocol(s) in catalog: {', '.join(unknown)}")
        self._protocols = protocols

    def list_protocols(self) -> list[ProtocolInfo]:
        return list(self._protocols)

    def get_protocol(self, name: str) -> ProtocolInfo | None:
        return next((item for item in self._protocols if item.name == name), None)
