"""Posting permission checks for accounts."""

from scripthub.services.posting_permission.posting_permission_service import (
    posting_permission_service,
    PostingPermissionService,
    PostingPermission,
)

__all__ = ["posting_permission_service", "PostingPermissionService", "PostingPermission"]
