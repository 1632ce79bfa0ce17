"""Derived (denormalized) script state kept in sync with the newest version."""

from scripthub.services.script_state.script_state_service import (
    script_state_service,
    ScriptStateService,
)

__all__ = ["script_state_service", "ScriptStateService"]
