from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cloud_gateway.db.session import get_db
from cloud_gateway.dependencies import get_protocol_catalog_service
from cloud_gateway.repositories.stats import get_gateway_stats
from cloud_gateway.schemas.gateway import GatewayStatsResponse, ProtocolInfoResponse
from cloud_gateway.services.protocol_catalog import ProtocolCatalogService


router = APIRouter(prefix="/api/v1/gateway", tags=["gateway-catalog"])


@router.get("/protocols", response_model=list[ProtocolInfoResponse])
def get_protocols(
    catalog: ProtocolCatalogService = Depends(get_protocol_catalog_service),
) -> list[ProtocolInfoResponse]:
    return [ProtocolInfoResponse.model_validate(item) for item in catalog.list_protocols()]


@router.get("/protocols/{name}", response_model=ProtocolInfoResponse)
def get_protocol(
    name: str,
    catalog: ProtocolCatalogService = Depends(get_protocol_catalog_service),
) -> ProtocolInfoResponse:
    protocol = catalog.get_protocol(name)
    if protocol is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown protocol")
    return ProtocolInfoResponse.model_validate(protocol)


@router.get("/stats", response_model=GatewayStatsResponse)
def get_stats(
    user_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
) -> GatewayStatsResponse:
    return GatewayStatsResponse.model_validate(get_gateway_stats(db, user_id=user_id))
