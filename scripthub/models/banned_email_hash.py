"""BannedEmailHash model for blocking re-registration of banned emails"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from scripthub.db.database import Base


class BannedEmailHash(Base):
    """Salted hash of the canonical email of a banned account that was deleted.

    The plaintext email is gone with the account; the hash is enough to
    refuse a new registration with the same address.
    """

    __tablename__ = "banned_email_hashes"

    id = Column(Integer, primary_key=True)
    email_hash = Column(String(40), unique=True, nullable=False, index=True)  # SHA1 hex digest
    banned_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<BannedEmailHash(email_hash={self.email_hash[:8]}...)>"
