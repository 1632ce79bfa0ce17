"""ModeratorAction model, the append-only moderation audit log"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from scripthub.db.database import Base


class ModeratorAction(Base):
    """One moderator decision against a script or an account"""

    __tablename__ = "moderator_actions"

    id = Column(Integer, primary_key=True)
    moderator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(255), nullable=False)
    reason = Column(Text, nullable=False)
    private_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    moderator = relationship("User", foreign_keys=[moderator_id])

    def __repr__(self):
        return f"<ModeratorAction(id={self.id}, action='{self.action}')>"
