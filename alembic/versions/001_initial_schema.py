"""Initial schema: accounts, scripts, versions and moderation

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Accounts
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("canonical_email", sa.String(length=255), nullable=True),
        sa.Column("email_domain", sa.String(length=255), nullable=True),
        sa.Column("firebase_uid", sa.String(length=128), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("banned_at", sa.DateTime(), nullable=True),
        sa.Column("trusted_reports", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("preferred_markup", sa.String(length=10), nullable=False, server_default="html"),
        sa.Column("locale", sa.String(length=10), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_name"), "users", ["name"], unique=True)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=False)
    op.create_index(op.f("ix_users_canonical_email"), "users", ["canonical_email"], unique=False)
    op.create_index(op.f("ix_users_email_domain"), "users", ["email_domain"], unique=False)
    op.create_index(op.f("ix_users_firebase_uid"), "users", ["firebase_uid"], unique=True)
    op.create_index(op.f("ix_users_banned_at"), "users", ["banned_at"], unique=False)

    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "role_id"),
    )
    op.create_table(
        "identities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.Column("uid", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_identities_user_id"), "identities", ["user_id"], unique=False)

    op.create_table(
        "spammy_email_domains",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("block_type", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_spammy_email_domains_domain"), "spammy_email_domains", ["domain"], unique=True)

    op.create_table(
        "banned_email_hashes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email_hash", sa.String(length=40), nullable=False),
        sa.Column("banned_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_banned_email_hashes_email_hash"), "banned_email_hashes", ["email_hash"], unique=True)

    # Scripts
    op.create_table(
        "scripts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("script_type", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("language", sa.String(length=10), nullable=False, server_default="js"),
        sa.Column("locale", sa.String(length=10), nullable=True),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("delete_reason", sa.Text(), nullable=True),
        sa.Column("script_delete_type", sa.Integer(), nullable=True),
        sa.Column("review_state", sa.String(length=20), nullable=False, server_default="not_required"),
        sa.Column("adult_content_self_report", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("not_adult_content_self_report_date", sa.DateTime(), nullable=True),
        sa.Column("not_js_convertible_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("name", sa.String(length=500), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("namespace", sa.String(length=500), nullable=True),
        sa.Column("version", sa.String(length=100), nullable=True),
        sa.Column("additional_info", sa.Text(), nullable=True),
        sa.Column("additional_info_markup", sa.String(length=10), nullable=False, server_default="html"),
        sa.Column("code_updated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_scripts_id"), "scripts", ["id"], unique=False)

    op.create_table(
        "authors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("script_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["script_id"], ["scripts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_authors_script_id"), "authors", ["script_id"], unique=False)
    op.create_index(op.f("ix_authors_user_id"), "authors", ["user_id"], unique=False)

    op.create_table(
        "localized_script_attributes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("script_id", sa.Integer(), nullable=False),
        sa.Column("attribute_key", sa.String(length=50), nullable=False),
        sa.Column("attribute_value", sa.Text(), nullable=True),
        sa.Column("attribute_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("locale", sa.String(length=10), nullable=True),
        sa.Column("value_markup", sa.String(length=10), nullable=False, server_default="text"),
        sa.ForeignKeyConstraint(["script_id"], ["scripts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_localized_script_attributes_script_id"), "localized_script_attributes", ["script_id"], unique=False
    )

    # Versions
    op.create_table(
        "script_versions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("script_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("changelog", sa.Text(), nullable=True),
        sa.Column("changelog_markup", sa.String(length=10), nullable=False, server_default="text"),
        sa.Column("version", sa.String(length=100), nullable=True),
        sa.Column("namespace", sa.String(length=500), nullable=True),
        sa.Column("version_check_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("add_missing_version", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("namespace_check_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("add_missing_namespace", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("minified_confirmation", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sensitive_site_confirmation", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("not_js_convertible_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("allow_code_previously_posted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["script_id"], ["scripts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_script_versions_id"), "script_versions", ["id"], unique=False)
    op.create_index(op.f("ix_script_versions_script_id"), "script_versions", ["script_id"], unique=False)

    op.create_table(
        "localized_script_version_attributes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("script_version_id", sa.Integer(), nullable=False),
        sa.Column("attribute_key", sa.String(length=50), nullable=False),
        sa.Column("attribute_value", sa.Text(), nullable=True),
        sa.Column("attribute_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("locale", sa.String(length=10), nullable=True),
        sa.Column("value_markup", sa.String(length=10), nullable=False, server_default="html"),
        sa.ForeignKeyConstraint(["script_version_id"], ["script_versions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_localized_script_version_attributes_script_version_id"),
        "localized_script_version_attributes",
        ["script_version_id"],
        unique=False,
    )

    op.create_table(
        "screenshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("storage_key", sa.String(length=500), nullable=True),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False),
        sa.Column("file_size_bytes", sa.Integer(), nullable=True),
        sa.Column("caption", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "script_version_screenshots",
        sa.Column("script_version_id", sa.Integer(), nullable=False),
        sa.Column("screenshot_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["screenshot_id"], ["screenshots.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["script_version_id"], ["script_versions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("script_version_id", "screenshot_id"),
    )

    # Moderation
    op.create_table(
        "moderator_actions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("moderator_id", sa.Integer(), nullable=True),
        sa.Column("script_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("private_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["moderator_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["script_id"], ["scripts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_moderator_actions_moderator_id"), "moderator_actions", ["moderator_id"], unique=False)
    op.create_index(op.f("ix_moderator_actions_script_id"), "moderator_actions", ["script_id"], unique=False)
    op.create_index(op.f("ix_moderator_actions_user_id"), "moderator_actions", ["user_id"], unique=False)

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_type", sa.String(length=20), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("reporter_id", sa.Integer(), nullable=True),
        sa.Column("reported_user_id", sa.Integer(), nullable=True),
        sa.Column("reason", sa.String(length=50), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("result", sa.String(length=20), nullable=True),
        sa.Column("resolver_id", sa.Integer(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["reporter_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["reported_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["resolver_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_reports_item_type"), "reports", ["item_type"], unique=False)
    op.create_index(op.f("ix_reports_item_id"), "reports", ["item_id"], unique=False)
    op.create_index(op.f("ix_reports_reporter_id"), "reports", ["reporter_id"], unique=False)
    op.create_index(op.f("ix_reports_reported_user_id"), "reports", ["reported_user_id"], unique=False)
    op.create_index(op.f("ix_reports_result"), "reports", ["result"], unique=False)


def downgrade() -> None:
    op.drop_table("reports")
    op.drop_table("moderator_actions")
    op.drop_table("script_version_screenshots")
    op.drop_table("screenshots")
    op.drop_table("localized_script_version_attributes")
    op.drop_table("script_versions")
    op.drop_table("localized_script_attributes")
    op.drop_table("authors")
    op.drop_table("scripts")
    op.drop_table("banned_email_hashes")
    op.drop_table("spammy_email_domains")
    op.drop_table("identities")
    op.drop_table("user_roles")
    op.drop_table("roles")
    op.drop_table("users")
