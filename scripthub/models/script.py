"""Script model, its author links and localized name/description"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from scripthub.db.database import Base
from scripthub.utils.constants import SCRIPT_TYPE_LIBRARY


class ReviewState(str, PyEnum):
    NOT_REQUIRED = "not_required"
    REQUIRED = "required"
    APPROVED = "approved"


class ScriptDeleteType(int, PyEnum):
    KEEP = 1     # Deleted, code still viewable
    BLANKED = 2  # Deleted and code replaced


class Script(Base):
    """A published script.

    name, description, namespace, version, additional_info and
    code_updated_at are copied from the newest saved version by
    script_state.apply_from_script_version(); never set them directly.
    """

    __tablename__ = "scripts"

    id = Column(Integer, primary_key=True, index=True)
    script_type = Column(Integer, nullable=False, default=1)
    language = Column(String(10), nullable=False, default="js")
    locale = Column(String(10), nullable=True)
    locked = Column(Boolean, default=False, nullable=False)
    delete_reason = Column(Text, nullable=True)
    script_delete_type = Column(Integer, nullable=True)
    review_state = Column(String(20), default=ReviewState.NOT_REQUIRED.value, nullable=False)
    adult_content_self_report = Column(Boolean, default=False, nullable=False)
    not_adult_content_self_report_date = Column(DateTime, nullable=True)
    not_js_convertible_override = Column(Boolean, default=False, nullable=False)

    # Denormalized from the newest saved version
    name = Column(String(500), nullable=True)
    description = Column(String(500), nullable=True)
    namespace = Column(String(500), nullable=True)
    version = Column(String(100), nullable=True)
    additional_info = Column(Text, nullable=True)
    additional_info_markup = Column(String(10), default="html", nullable=False)
    code_updated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    authors = relationship("Author", back_populates="script", cascade="all, delete-orphan")
    versions = relationship(
        "ScriptVersion",
        back_populates="script",
        cascade="all, delete-orphan",
        order_by="ScriptVersion.id",
    )
    localized_attributes = relationship(
        "ScriptLocalizedAttribute",
        back_populates="script",
        cascade="all, delete-orphan",
    )

    @property
    def library(self) -> bool:
        return self.script_type == SCRIPT_TYPE_LIBRARY

    @property
    def deleted(self) -> bool:
        return self.script_delete_type is not None

    def __repr__(self):
        return f"<Script(id={self.id}, name='{self.name}')>"


class Author(Base):
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    script = relationship("Script", back_populates="authors")
    user = relationship("User", back_populates="authors")


class ScriptLocalizedAttribute(Base):
    """Per-locale name or description of a script"""

    __tablename__ = "localized_script_attributes"

    id = Column(Integer, primary_key=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True)
    attribute_key = Column(String(50), nullable=False)
    attribute_value = Column(Text, nullable=True)
    attribute_default = Column(Boolean, default=False, nullable=False)
    locale = Column(String(10), nullable=True)
    value_markup = Column(String(10), default="text", nullable=False)

    script = relationship("Script", back_populates="localized_attributes")

    def __repr__(self):
        return f"<ScriptLocalizedAttribute(key='{self.attribute_key}', locale='{self.locale}')>"
