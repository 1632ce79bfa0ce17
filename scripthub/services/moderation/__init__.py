"""Moderation rules: bans, report resolution, trusted reporters, script locking."""

from scripthub.services.moderation.moderation_service import (
    moderation_service,
    ModerationService,
)

__all__ = ["moderation_service", "ModerationService"]
