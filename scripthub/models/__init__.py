from scripthub.db.database import Base
from scripthub.models.user import User, Identity, Role, MODERATOR_ROLE, ADMINISTRATOR_ROLE
from scripthub.models.spammy_email_domain import SpammyEmailDomain, BlockType
from scripthub.models.script import (
    Script,
    Author,
    ScriptLocalizedAttribute,
    ReviewState,
    ScriptDeleteType,
)
from scripthub.models.script_version import (
    ScriptVersion,
    LocalizedScriptVersionAttribute,
    Screenshot,
)
from scripthub.models.moderator_action import ModeratorAction
from scripthub.models.report import Report, ReportItemType, ReportResult
from scripthub.models.banned_email_hash import BannedEmailHash

__all__ = [
    "Base",
    "User",
    "Identity",
    "Role",
    "MODERATOR_ROLE",
    "ADMINISTRATOR_ROLE",
    "SpammyEmailDomain",
    "BlockType",
    "Script",
    "Author",
    "ScriptLocalizedAttribute",
    "ReviewState",
    "ScriptDeleteType",
    "ScriptVersion",
    "LocalizedScriptVersionAttribute",
    "Screenshot",
    "ModeratorAction",
    "Report",
    "ReportItemType",
    "ReportResult",
    "BannedEmailHash",
]
