"""Moderator deletion of single script versions."""

from scripthub.services.version_deletion.version_deletion_service import (
    VERSION_DELETED_NOTICE,
    VersionDeletionService,
    version_deletion_service,
)

__all__ = ["VERSION_DELETED_NOTICE", "VersionDeletionService", "version_deletion_service"]
