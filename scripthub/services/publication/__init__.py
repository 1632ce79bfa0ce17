"""Script version publication workflow."""

from scripthub.services.publication.publication_service import (
    AdditionalInfoPlan,
    PublicationPersisted,
    PublicationRejected,
    PublicationService,
    plan_additional_info,
    publication_service,
)

__all__ = [
    "AdditionalInfoPlan",
    "PublicationPersisted",
    "PublicationRejected",
    "PublicationService",
    "plan_additional_info",
    "publication_service",
]
