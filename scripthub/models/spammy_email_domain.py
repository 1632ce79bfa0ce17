"""SpammyEmailDomain model for posting and registration restrictions"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Integer, String

from scripthub.db.database import Base


class BlockType(str, PyEnum):
    NONE = "none"                      # Only triggers the confirmation grace period
    SCRIPT_POSTING = "script_posting"  # Accounts on this domain can't post scripts
    REGISTER = "register"              # New accounts can't use this domain


class SpammyEmailDomain(Base):
    __tablename__ = "spammy_email_domains"

    id = Column(Integer, primary_key=True)
    domain = Column(String(255), unique=True, nullable=False, index=True)
    block_type = Column(String(20), default=BlockType.NONE.value, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def blocked_script_posting(self) -> bool:
        return self.block_type == BlockType.SCRIPT_POSTING.value

    def __repr__(self):
        return f"<SpammyEmailDomain(domain='{self.domain}', block_type='{self.block_type}')>"
