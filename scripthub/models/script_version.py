"""ScriptVersion model with its additional info and screenshots"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from scripthub.db.database import Base


# Unchanged screenshots are shared between consecutive versions
script_version_screenshots = Table(
    "script_version_screenshots",
    Base.metadata,
    Column(
        "script_version_id",
        Integer,
        ForeignKey("script_versions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "screenshot_id",
        Integer,
        ForeignKey("screenshots.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class ScriptVersion(Base):
    """Snapshot of a script's code. Never modified after it is saved."""

    __tablename__ = "script_versions"

    id = Column(Integer, primary_key=True, index=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(Text, nullable=False, default="")
    changelog = Column(Text, nullable=True)
    changelog_markup = Column(String(10), default="text", nullable=False)
    version = Column(String(100), nullable=True)
    namespace = Column(String(500), nullable=True)

    # Author-confirmed overrides of individual validations
    version_check_override = Column(Boolean, default=False, nullable=False)
    add_missing_version = Column(Boolean, default=False, nullable=False)
    namespace_check_override = Column(Boolean, default=False, nullable=False)
    add_missing_namespace = Column(Boolean, default=False, nullable=False)
    minified_confirmation = Column(Boolean, default=False, nullable=False)
    sensitive_site_confirmation = Column(Boolean, default=False, nullable=False)
    not_js_convertible_override = Column(Boolean, default=False, nullable=False)
    allow_code_previously_posted = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    script = relationship("Script", back_populates="versions")
    localized_attributes = relationship(
        "LocalizedScriptVersionAttribute",
        back_populates="script_version",
        cascade="all, delete-orphan",
    )
    screenshots = relationship(
        "Screenshot",
        secondary=script_version_screenshots,
        order_by="Screenshot.id",
    )

    def __repr__(self):
        return f"<ScriptVersion(id={self.id}, script_id={self.script_id}, version='{self.version}')>"


class LocalizedScriptVersionAttribute(Base):
    """Per-locale additional info of a version"""

    __tablename__ = "localized_script_version_attributes"

    id = Column(Integer, primary_key=True)
    script_version_id = Column(
        Integer, ForeignKey("script_versions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attribute_key = Column(String(50), nullable=False, default="additional_info")
    attribute_value = Column(Text, nullable=True)
    attribute_default = Column(Boolean, default=False, nullable=False)
    locale = Column(String(10), nullable=True)
    value_markup = Column(String(10), default="html", nullable=False)

    script_version = relationship("ScriptVersion", back_populates="localized_attributes")


class Screenshot(Base):
    __tablename__ = "screenshots"

    id = Column(Integer, primary_key=True)
    storage_key = Column(String(500), nullable=True)  # S3 key
    filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False)
    file_size_bytes = Column(Integer, nullable=True)
    caption = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Screenshot(id={self.id}, filename='{self.filename}')>"
