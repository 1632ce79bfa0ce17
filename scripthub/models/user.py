"""User (account) model and its identities and roles"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from scripthub.db.database import Base

MODERATOR_ROLE = "Moderator"
ADMINISTRATOR_ROLE = "Administrator"


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), unique=True, nullable=False)

    def __repr__(self):
        return f"<Role(name='{self.name}')>"


class User(Base):
    """An account that can author scripts, file reports and moderate.

    canonical_email and email_domain are derived from email and must be
    refreshed with accounts.prepare_for_save() before every persist that
    changes the email.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    canonical_email = Column(String(255), nullable=True, index=True)
    email_domain = Column(String(255), nullable=True, index=True)
    firebase_uid = Column(String(128), unique=True, nullable=True, index=True)
    confirmed_at = Column(DateTime, nullable=True)
    banned_at = Column(DateTime, nullable=True, index=True)
    trusted_reports = Column(Boolean, default=False, nullable=False)
    preferred_markup = Column(String(10), default="html", nullable=False)
    locale = Column(String(10), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    identities = relationship("Identity", back_populates="user", cascade="all, delete-orphan")
    authors = relationship("Author", back_populates="user", cascade="all, delete-orphan")
    roles = relationship("Role", secondary=user_roles)

    @property
    def banned(self) -> bool:
        return self.banned_at is not None

    @property
    def confirmed(self) -> bool:
        return self.confirmed_at is not None

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}')>"


class Identity(Base):
    """An external sign-in provider account linked to a user"""

    __tablename__ = "identities"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(50), nullable=False)
    uid = Column(String(255), nullable=False)
    url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="identities")

    def __repr__(self):
        return f"<Identity(provider='{self.provider}', user_id={self.user_id})>"
