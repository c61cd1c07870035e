from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from unittest import TestCase

from fastapi import FastAPI
from fastapi.testclient import TestClient

from cloud_gateway.api.catalog import router as catalog_router
from cloud_gateway.api.connections import router as connections_router
from cloud_gateway.api.meshes import router as meshes_router
from cloud_gateway.core.config import Settings
from cloud_gateway.db.models import CONNECTION_PROTOCOLS, AuthUser, GatewaySyncLog
from cloud_gateway.db.schema import create_schema
from cloud_gateway.db.session import build_engine, build_session_factory, get_db
from cloud_gateway.services.protocol_catalog import ProtocolCatalogService

BASE = "/api/v1/gateway"


def _build_app(session_factory, settings: Settings) -> FastAPI:
    app = FastAPI()
    app.include_router(connections_router)
    app.include_router(meshes_router)
    app.include_router(catalog_router)
    app.state.settings = settings
    app.state.protocol_catalog_service = ProtocolCatalogService()

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    return app


class GatewayApiTests(TestCase):
    def setUp(self) -> None:
        self.engine = build_engine("sqlite://", auth_schema=None)
        create_schema(self.engine, include_auth=True)
        self.session_factory = build_session_factory(self.engine)
        with self.session_factory() as db:
            user = AuthUser(email="owner@example.com")
            db.add(user)
            db.commit()
            self.user_id = str(user.id)
        settings = Settings(
            gateway_endpoint_template="wss://gw.test/{region}",
            sync_log_default_limit=3,
            sync_log_max_limit=4,
        )
        self.client = TestClient(_build_app(self.session_factory, settings))

    def tearDown(self) -> None:
        self.client.close()
        self.engine.dispose()

    def _post_connection(self, **payload) -> dict:
        body = {"user_id": self.user_id, "device_id": "dev-1", **payload}
        response = self.client.post(f"{BASE}/connections", json=body)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_connection_applies_defaults_and_derives_endpoint(self) -> None:
        created = self._post_connection()

        self.assertEqual(created["protocol"], "sdf-stream")
        self.assertEqual(created["region"], "us-east-1")
        self.assertEqual(created["status"], "connected")
        self.assertEqual(created["endpoint"], "wss://gw.test/us-east-1")
        self.assertIsNotNone(created["created_at"])
        self.assertIsNotNone(created["last_seen_at"])

    def test_create_connection_keeps_explicit_endpoint_and_region(self) -> None:
        created = self._post_connection(region="ap-south-1", endpoint="10.1.2.3:8883", protocol="mqtt-bridge")

        self.assertEqual(created["region"], "ap-south-1")
        self.assertEqual(created["endpoint"], "10.1.2.3:8883")
        self.assertEqual(created["protocol"], "mqtt-bridge")

    def test_region_only_shapes_the_derived_endpoint(self) -> None:
        created = self._post_connection(region="eu-central-1")

        self.assertEqual(created["endpoint"], "wss://gw.test/eu-central-1")

    def test_invalid_enumerations_are_rejected_before_the_database(self) -> None:
        bad_protocol = self.client.post(
            f"{BASE}/connections",
            json={"user_id": self.user_id, "device_id": "d", "protocol": "websocket"},
        )
        bad_status = self.client.post(
            f"{BASE}/connections",
            json={"user_id": self.user_id, "device_id": "d", "status": "idle"},
        )
        blank_device = self.client.post(
            f"{BASE}/connections",
            json={"user_id": self.user_id, "device_id": "   "},
        )

        self.assertEqual(bad_protocol.status_code, 422)
        self.assertEqual(bad_status.status_code, 422)
        self.assertEqual(blank_device.status_code, 422)

    def test_unknown_user_is_a_conflict(self) -> None:
        response = self.client.post(
            f"{BASE}/connections",
            json={"user_id": str(uuid.uuid4()), "device_id": "dev-1"},
        )

        self.assertEqual(response.status_code, 409)

    def test_list_connections_requires_owner(self) -> None:
        self._post_connection(device_id="a")
        self._post_connection(device_id="b", status="error")

        missing_owner = self.client.get(f"{BASE}/connections")
        listed = self.client.get(f"{BASE}/connections", params={"user_id": self.user_id})
        errored = self.client.get(f"{BASE}/connections", params={"user_id": self.user_id, "status": "error"})

        self.assertEqual(missing_owner.status_code, 422)
        self.assertEqual(sorted(item["device_id"] for item in listed.json()), ["a", "b"])
        self.assertEqual([item["device_id"] for item in errored.json()], ["b"])

    def test_get_and_patch_connection(self) -> None:
        created = self._post_connection()
        url = f"{BASE}/connections/{created['id']}"

        patched = self.client.patch(url, json={"status": "disconnected"})
        empty = self.client.patch(url, json={})
        invalid = self.client.patch(url, json={"status": "gone"})
        fetched = self.client.get(url)

        self.assertEqual(patched.status_code, 200)
        self.assertEqual(patched.json()["status"], "disconnected")
        self.assertEqual(empty.status_code, 400)
        self.assertEqual(invalid.status_code, 422)
        self.assertEqual(fetched.json()["status"], "disconnected")

    def test_unknown_connection_is_not_found(self) -> None:
        missing = uuid.uuid4()

        self.assertEqual(self.client.get(f"{BASE}/connections/{missing}").status_code, 404)
        self.assertEqual(self.client.delete(f"{BASE}/connections/{missing}").status_code, 404)
        self.assertEqual(
            self.client.post(f"{BASE}/connections/{missing}/sync-logs", json={}).status_code,
            404,
        )

    def test_heartbeat_advances_last_seen(self) -> None:
        created = self._post_connection()

        response = self.client.post(
            f"{BASE}/connections/{created['id']}/heartbeat",
            json={"seen_at": "2030-01-01T00:00:00Z"},
        )
        stale = self.client.post(
            f"{BASE}/connections/{created['id']}/heartbeat",
            json={"seen_at": "2029-01-01T00:00:00Z"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["last_seen_at"].startswith("2030-01-01T00:00:00"))
        self.assertTrue(stale.json()["last_seen_at"].startswith("2030-01-01T00:00:00"))

    def test_sync_logs_are_time_ordered_and_capped(self) -> None:
        created = self._post_connection()
        url = f"{BASE}/connections/{created['id']}/sync-logs"
        base = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)
        with self.session_factory() as db:
            for minute in (4, 0, 3, 1, 2):
                db.add(
                    GatewaySyncLog(
                        connection_id=uuid.UUID(created["id"]),
                        objects_synced=minute,
                        sdf_bytes=4096,
                        latency_ms=8.5,
                        created_at=base + timedelta(minutes=minute),
                    )
                )
            db.commit()

        default_page = self.client.get(url)
        capped = self.client.get(url, params={"limit": 50})
        window = self.client.get(
            url,
            params={"since": "2026-10-19T10:01:00Z", "until": "2026-10-19T10:03:00Z"},
        )
        inverted = self.client.get(
            url,
            params={"since": "2026-10-19T10:03:00Z", "until": "2026-10-19T10:01:00Z"},
        )

        self.assertEqual([item["objects_synced"] for item in default_page.json()], [0, 1, 2])
        self.assertEqual([item["objects_synced"] for item in capped.json()], [0, 1, 2, 3])
        self.assertEqual([item["objects_synced"] for item in window.json()], [1, 2])
        self.assertEqual(inverted.status_code, 400)

    def test_sync_log_timestamp_is_assigned_by_the_server(self) -> None:
        created = self._post_connection()
        url = f"{BASE}/connections/{created['id']}/sync-logs"

        response = self.client.post(
            url,
            json={"objects_synced": 2, "created_at": "1999-01-01T00:00:00Z"},
        )

        self.assertEqual(response.status_code, 201, response.text)
        stored_at = datetime.fromisoformat(response.json()["created_at"].replace("Z", "+00:00"))
        if stored_at.tzinfo is None:
            stored_at = stored_at.replace(tzinfo=timezone.utc)
        self.assertLess(abs(stored_at - datetime.now(timezone.utc)), timedelta(minutes=5))
        self.assertEqual(len(self.client.get(url, params={"until": "2000-01-01T00:00:00Z"}).json()), 0)

    def test_negative_sync_log_values_are_rejected(self) -> None:
        created = self._post_connection()

        response = self.client.post(
            f"{BASE}/connections/{created['id']}/sync-logs",
            json={"sdf_bytes": -1},
        )

        self.assertEqual(response.status_code, 422)

    def test_delete_connection_removes_its_sync_logs(self) -> None:
        doomed = self._post_connection(device_id="doomed")
        survivor = self._post_connection(device_id="survivor")
        for connection in (doomed, survivor):
            self.client.post(f"{BASE}/connections/{connection['id']}/sync-logs", json={"objects_synced": 1})

        deleted = self.client.delete(f"{BASE}/connections/{doomed['id']}")
        stats = self.client.get(f"{BASE}/stats").json()

        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.client.get(f"{BASE}/connections/{doomed['id']}/sync-logs").status_code, 404)
        self.assertEqual(len(self.client.get(f"{BASE}/connections/{survivor['id']}/sync-logs").json()), 1)
        self.assertEqual(stats["total_syncs"], 1)
        self.assertEqual(stats["total_connections"], 1)

    def test_create_mesh_counts_listed_devices(self) -> None:
        response = self.client.post(
            f"{BASE}/meshes",
            json={"user_id": self.user_id, "devices": ["cam-1", "cam-2", "cam-3"]},
        )

        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["device_count"], 3)
        self.assertEqual(body["topology"], "full-mesh")
        self.assertEqual(body["status"], "established")

    def test_create_mesh_validation(self) -> None:
        bad_topology = self.client.post(f"{BASE}/meshes", json={"user_id": self.user_id, "topology": "hexagon"})
        mismatch = self.client.post(
            f"{BASE}/meshes",
            json={"user_id": self.user_id, "devices": ["a"], "device_count": 2},
        )
        negative = self.client.post(f"{BASE}/meshes", json={"user_id": self.user_id, "device_count": -1})
        unknown_user = self.client.post(f"{BASE}/meshes", json={"user_id": str(uuid.uuid4())})

        self.assertEqual(bad_topology.status_code, 422)
        self.assertEqual(mismatch.status_code, 422)
        self.assertEqual(negative.status_code, 422)
        self.assertEqual(unknown_user.status_code, 409)

    def test_mesh_lifecycle_updates(self) -> None:
        created = self.client.post(
            f"{BASE}/meshes",
            json={"user_id": self.user_id, "topology": "ring", "status": "establishing"},
        ).json()
        url = f"{BASE}/meshes/{created['id']}"

        patched = self.client.patch(url, json={"status": "dissolved", "device_count": 0})
        empty = self.client.patch(url, json={})
        listed = self.client.get(f"{BASE}/meshes", params={"user_id": self.user_id, "status": "dissolved"})
        stats = self.client.get(f"{BASE}/stats", params={"user_id": self.user_id}).json()

        self.assertEqual(patched.json()["status"], "dissolved")
        self.assertEqual(empty.status_code, 400)
        self.assertEqual([item["id"] for item in listed.json()], [created["id"]])
        self.assertEqual(stats["active_meshes"], 0)
        self.assertEqual(self.client.get(f"{BASE}/meshes/{uuid.uuid4()}").status_code, 404)

    def test_protocol_catalog(self) -> None:
        listed = self.client.get(f"{BASE}/protocols").json()
        relay = self.client.get(f"{BASE}/protocols/grpc-relay")
        unknown = self.client.get(f"{BASE}/protocols/carrier-pigeon")

        self.assertEqual([item["name"] for item in listed], list(CONNECTION_PROTOCOLS))
        self.assertEqual(relay.json()["throughput_mbps"], 500.0)
        self.assertEqual(unknown.status_code, 404)
