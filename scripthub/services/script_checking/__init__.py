"""Automated checking of submitted script code."""

from scripthub.services.script_checking.script_checking_service import (
    script_checking_service,
    ScriptCheckingService,
    CodePatternChecker,
    PreviouslyDeletedCodeChecker,
    Finding,
    Verdict,
)

__all__ = [
    "script_checking_service",
    "ScriptCheckingService",
    "CodePatternChecker",
    "PreviouslyDeletedCodeChecker",
    "Finding",
    "Verdict",
]
