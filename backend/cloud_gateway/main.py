import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from sqlalchemy.orm import Session

from cloud_gateway import __version__
from cloud_gateway.api.catalog import router as catalog_router
from cloud_gateway.api.connections import router as connections_router
from cloud_gateway.api.meshes import router as meshes_router
from cloud_gateway.core.config import Settings, get_settings
from cloud_gateway.core.logging import configure_logging
from cloud_gateway.db.schema import missing_gateway_tables
from cloud_gateway.db.session import check_db_connection, engine, get_db
from cloud_gateway.services.protocol_catalog import ProtocolCatalogService

logger = logging.getLogger("cloud_gateway.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    app.state.started_at = time.monotonic()
    settings = get_settings()
    app.state.settings = settings
    app.state.protocol_catalog_service = ProtocolCatalogService()

    try:
        missing = missing_gateway_tables(engine)
    except Exception:
        logger.exception("could not inspect gateway schema at startup")
    else:
        if missing:
            logger.warning("gateway tables missing, run 'alembic upgrade head': %s", ", ".join(missing))

    logger.info("cloud gateway backend started version=%s auth_schema=%s", __version__, settings.auth_schema)
    yield


app = FastAPI(title="Cloud Gateway Backend", version=__version__, lifespan=lifespan)
app.include_router(connections_router)
app.include_router(meshes_router)
app.include_router(catalog_router)


@app.get("/health")
def health(request: Request):
    started_at: float | None = getattr(request.app.state, "started_at", None)
    uptime_secs = int(time.monotonic() - started_at) if started_at is not None else 0
    return {"status": "ok", "service": "gateway", "version": __version__, "uptime_secs": uptime_secs}


@app.get("/status")
def status(request: Request, db: Session = Depends(get_db)):
    db_ok, db_error = check_db_connection(db)
    settings: Settings | None = getattr(request.app.state, "settings", None)

    db_status: dict[str, object] = {"ok": db_ok}
    if db_error:
        db_status["error"] = db_error

    return {
        "status": "working" if db_ok else "degraded",
        "service": "gateway",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "db": db_status,
        "config": {
            "auth_schema": settings.auth_schema if settings else None,
            "gateway_endpoint_template": settings.gateway_endpoint_template if settings else None,
            "sync_log_default_limit": settings.sync_log_default_limit if settings else None,
            "sync_log_max_limit": settings.sync_log_max_limit if settings else None,
        },
    }
