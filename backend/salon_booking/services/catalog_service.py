# backend/salon_booking/services/catalog_service.py
"""
Catalog service: staff lookups, effective price/duration, basket timelines.
"""

from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import ERROR_NO_SERVICES
from ..core.exceptions import NotFoundException, ValidationException
from ..domain.chemical import ChemicalClassifier, default_classifier
from ..domain.timeline import EffectiveTerms, Resolver, Timeline, base_terms, build_timeline
from ..models.service import Service, StaffService
from ..models.staff import Staff
from ..repositories.factory import RepositoryFactory
from ..repositories.resource_repository import ResourceRepository
from .base import BaseService


def make_override_resolver(overrides: Dict[str, StaffService]) -> Resolver:
    """
    Resolver applying per-staff overrides.

    Without an override the base price and duration apply. With one, its
    price wins even when null (price to be confirmed) and its duration wins
    only when positive.
    """

    def resolve(service: Service) -> EffectiveTerms:
        override = overrides.get(service.id)
        if override is None:
            return EffectiveTerms(duration=service.base_duration, price=service.base_price)
        duration = override.effective_duration or service.base_duration
        return EffectiveTerms(duration=duration, price=override.price)

    return resolve


class CatalogService(BaseService):
    def __init__(
        self,
        db: Session,
        resource_repository: Optional[ResourceRepository] = None,
        classifier: ChemicalClassifier = default_classifier,
    ):
        super().__init__(db)
        self.resource_repository = (
            resource_repository or RepositoryFactory.create_resource_repository(db)
        )
        self.classifier = classifier

    def get_staff(self, staff_id: str) -> Staff:
        if not staff_id:
            raise ValidationException("Choose a staff member", code="RESOURCE_REQUIRED")
        staff = self.resource_repository.get_by_id(staff_id)
        if staff is None:
            raise NotFoundException(f"Staff member {staff_id} not found", code="STAFF_NOT_FOUND")
        return staff

    def get_services(self, service_ids: Sequence[str]) -> List[Service]:
        services = self.resource_repository.get_services(service_ids)
        missing = sorted(set(service_ids) - {s.id for s in services})
        if missing:
            raise NotFoundException(
                "One or more services were not found",
                code="SERVICE_NOT_FOUND",
                details={"service_ids": missing},
            )
        return services

    def resolver_for(self, staff_id: Optional[str]) -> Resolver:
        if not staff_id:
            return base_terms
        return make_override_resolver(self.resource_repository.get_overrides_for_staff(staff_id))

    def effective_terms(self, service: Service, staff_id: Optional[str]) -> EffectiveTerms:
        return self.resolver_for(staff_id)(service)

    @BaseService.measure_operation("build_timeline")
    def build_basket_timeline(
        self, service_ids: Sequence[str], staff_id: Optional[str] = None
    ) -> Timeline:
        """
        Timeline for a basket of service ids in selection order.

        Raises:
            ValidationException: Empty basket or a service with no usable duration
            NotFoundException: Unknown service id
        """
        if not service_ids:
            raise ValidationException(ERROR_NO_SERVICES, code="NO_SERVICES")
        services = self.get_services(service_ids)
        return self.timeline_for(services, staff_id)

    def timeline_for(self, services: Sequence[Service], staff_id: Optional[str] = None) -> Timeline:
        if not services:
            raise ValidationException(ERROR_NO_SERVICES, code="NO_SERVICES")
        try:
            return build_timeline(
                services,
                self.resolver_for(staff_id),
                self.classifier,
                chemical_gap_minutes=settings.chemical_gap_minutes,
            )
        except ValueError as exc:
            raise ValidationException(str(exc), code="INVALID_SERVICE") from exc
