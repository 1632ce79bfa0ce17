"""Automated script checker.

Each checker looks at a proposed version and may return a Finding. The
overall verdict is the most severe finding: ban > block > review > allow.
"""

import logging
import re
from dataclasses import asdict, dataclass
from enum import Enum as PyEnum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.config import settings
from scripthub.models.script import Script
from scripthub.models.script_version import ScriptVersion

logger = logging.getLogger(__name__)


class Verdict(str, PyEnum):
    ALLOW = "allow"
    REVIEW = "review"    # Publish, but the script needs moderator review
    BLOCK = "block"      # Don't publish
    BAN = "ban"          # Publish, then ban the authors and delete the script

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    Verdict.ALLOW: 0,
    Verdict.REVIEW: 1,
    Verdict.BLOCK: 2,
    Verdict.BAN: 3,
}


@dataclass
class Finding:
    checker: str
    verdict: Verdict
    public_reason: str
    private_reason: str | None = None
    related_script_id: int | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["verdict"] = self.verdict.value
        return data


class CodePatternChecker:
    """Flags code matching configured regular expressions.

    Patterns are checked most severe first; the first match wins.
    """

    name = "code_pattern"

    def __init__(
        self,
        ban_patterns: list[str] | None = None,
        block_patterns: list[str] | None = None,
        review_patterns: list[str] | None = None,
    ):
        self.rules = [
            (Verdict.BAN, ban_patterns if ban_patterns is not None else settings.ban_code_patterns),
            (Verdict.BLOCK, block_patterns if block_patterns is not None else settings.blocked_code_patterns),
            (Verdict.REVIEW, review_patterns if review_patterns is not None else settings.review_code_patterns),
        ]

    async def check(self, db: AsyncSession, script: Script, version: ScriptVersion) -> Finding | None:
        code = version.code or ""
        for verdict, patterns in self.rules:
            for pattern in patterns:
                if re.search(pattern, code):
                    return Finding(
                        checker=self.name,
                        verdict=verdict,
                        public_reason="This script contains code that is not allowed on this site.",
                        private_reason=f"Matched pattern {pattern!r}",
                    )
        return None


class PreviouslyDeletedCodeChecker:
    """Blocks code identical to a version of a script that was deleted."""

    name = "previously_deleted_code"

    async def check(self, db: AsyncSession, script: Script, version: ScriptVersion) -> Finding | None:
        if version.allow_code_previously_posted or not version.code:
            return None

        query = (
            select(Script.id)
            .join(ScriptVersion, ScriptVersion.script_id == Script.id)
            .where(
                ScriptVersion.code == version.code,
                Script.script_delete_type.is_not(None),
            )
            .limit(1)
        )
        if script.id is not None:
            query = query.where(Script.id != script.id)

        result = await db.execute(query)
        deleted_script_id = result.scalar_one_or_none()
        if deleted_script_id is None:
            return None

        return Finding(
            checker=self.name,
            verdict=Verdict.BLOCK,
            public_reason="This code was previously posted in a script that was deleted.",
            private_reason=f"Same code as deleted script {deleted_script_id}",
            related_script_id=deleted_script_id,
        )


class ScriptCheckingService:
    """Runs every checker and combines their findings into a verdict."""

    def __init__(self, checkers: list | None = None):
        self.checkers = checkers if checkers is not None else [
            CodePatternChecker(),
            PreviouslyDeletedCodeChecker(),
        ]

    async def check(
        self,
        db: AsyncSession,
        script: Script,
        version: ScriptVersion,
    ) -> tuple[list[Finding], Verdict]:
        """Return the findings, most severe first, and the overall verdict."""
        findings = []
        for checker in self.checkers:
            finding = await checker.check(db, script, version)
            if finding is not None:
                findings.append(finding)

        findings.sort(key=lambda f: f.verdict.severity, reverse=True)
        verdict = findings[0].verdict if findings else Verdict.ALLOW

        if verdict != Verdict.ALLOW:
            logger.info(
                f"Script check verdict {verdict.value} for script {script.id}: "
                f"{[f.checker for f in findings]}"
            )
        return findings, verdict


# Global instance
script_checking_service = ScriptCheckingService()
