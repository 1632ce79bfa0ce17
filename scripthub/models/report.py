"""Report model for flags raised against accounts and content"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from scripthub.db.database import Base


class ReportItemType(str, PyEnum):
    USER = "user"
    SCRIPT = "script"
    COMMENT = "comment"


class ReportResult(str, PyEnum):
    DISMISSED = "dismissed"
    UPHELD = "upheld"


class Report(Base):
    """A report against an account or a piece of content.

    result is NULL while the report is pending. reported_user_id is the
    account the report is ultimately about: the reported account itself,
    or the author of the reported content.
    """

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True)
    item_type = Column(String(20), nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    reported_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    reason = Column(String(50), nullable=False)
    explanation = Column(Text, nullable=True)
    result = Column(String(20), nullable=True, index=True)
    resolver_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def pending(self) -> bool:
        return self.result is None

    def __repr__(self):
        return f"<Report(id={self.id}, item={self.item_type}:{self.item_id}, result={self.result})>"
