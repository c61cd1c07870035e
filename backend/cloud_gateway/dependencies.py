from typing import TYPE_CHECKING

from fastapi import HTTPException, Request

from cloud_gateway.core.config import Settings

if TYPE_CHECKING:
    from cloud_gateway.services.protocol_catalog import ProtocolCatalogService


def get_settings_from_app(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise HTTPException(status_code=503, detail="Application settings are not initialized")
    return settings


def get_protocol_catalog_service(request: Request) -> "ProtocolCatalogService":
    service = getattr(request.app.state, "protocol_catalog_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Protocol catalog service is not initialized")
    return service
