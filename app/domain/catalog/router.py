"""Catalog router - Provider service offerings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...database import get_db
from ...models import User
from .repository import CatalogRepository
from .schemas import ProviderServiceCreate, ProviderServiceResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/provider-services", tags=["Provider Services"])


@router.post("", response_model=ProviderServiceResponse, status_code=201)
async def create_provider_service(
    data: ProviderServiceCreate,
    provider: User = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    """Add an offering to the current provider's catalog"""
    service = CatalogRepository.create_service(
        db,
        provider.id,
        name=data.name,
        description=data.description,
        price=data.price,
        duration=data.duration,
    )
    logger.info(f"✅ Provider {provider.id} added service {service.id}: {service.name}")
    return ProviderServiceResponse.from_model(service)


@router.get("", response_model=list[ProviderServiceResponse])
async def list_provider_services(
    provider_id: Optional[int] = Query(None, alias="provider"),
    db: Session = Depends(get_db),
):
    """List offerings, optionally for a single provider"""
    return [ProviderServiceResponse.from_model(s) for s in CatalogRepository.get_services(db, provider_id)]
