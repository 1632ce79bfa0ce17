"""Abuse prevention: blocks re-registration with emails of banned, deleted accounts."""

from scripthub.services.abuse_prevention.abuse_prevention_service import (
    abuse_prevention_service,
    AbusePreventionService,
)

__all__ = ["abuse_prevention_service", "AbusePreventionService"]
