"""Catalog repository - Database operations for provider services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ProviderService


class CatalogRepository:
    """Repository for ProviderService database operations"""

    @staticmethod
    def get_services(db: Session, provider_id: Optional[int] = None) -> list[ProviderService]:
        query = db.query(ProviderService)
        if provider_id is not None:
            query = query.filter(ProviderService.provider_id == provider_id)
        return query.order_by(ProviderService.name).all()

    @staticmethod
    def create_service(db: Session, provider_id: int, **data) -> ProviderService:
        service = ProviderService(provider_id=provider_id, **data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service
