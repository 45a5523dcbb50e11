"""create users, templates, contracts, analyses and sharing tables

Revision ID: 0001_create_lexidraft_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_create_lexidraft_schema"
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("avatar", sa.String(length=1024), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("uid", name=op.f("uq_users_uid")),
        sa.UniqueConstraint("username", name=op.f("uq_users_username")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )

    op.create_table(
        "templates",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", name=op.f("fk_templates_user_id_users"), ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("clauses", JSONType, nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index(op.f("ix_templates_user_id"), "templates", ["user_id"], unique=False)
    op.create_index(op.f("ix_templates_type"), "templates", ["type"], unique=False)
    op.create_index(op.f("ix_templates_is_public"), "templates", ["is_public"], unique=False)

    op.create_table(
        "contracts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", name=op.f("fk_contracts_user_id_users"), ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("jurisdiction", sa.String(length=100), nullable=False, server_default="India"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("parties", JSONType, nullable=False),
        sa.Column("clauses", JSONType, nullable=False),
        sa.Column(
            "template_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "templates.id", name=op.f("fk_contracts_template_id_templates"), ondelete="SET NULL"
            ),
            nullable=True,
        ),
        sa.Column("document_path", sa.String(length=1024), nullable=True),
        sa.Column("document_mime_type", sa.String(length=255), nullable=True),
        sa.Column("document_size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("document_sha256", sa.String(length=64), nullable=True),
        sa.Column("document_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('draft', 'pending', 'signed', 'expired', 'cancelled')",
            name=op.f("ck_contracts_contracts_status_valid"),
        ),
        sa.CheckConstraint(
            "(document_path IS NULL) OR "
            "(document_path NOT LIKE '/%' AND document_path NOT LIKE '%..%')",
            name=op.f("ck_contracts_contracts_document_path_relative"),
        ),
        sa.CheckConstraint(
            "(document_sha256 IS NULL) OR (length(document_sha256) = 64)",
            name=op.f("ck_contracts_contracts_document_sha256_len_64"),
        ),
    )
    op.create_index(op.f("ix_contracts_user_id"), "contracts", ["user_id"], unique=False)
    op.create_index(op.f("ix_contracts_title"), "contracts", ["title"], unique=False)
    op.create_index(op.f("ix_contracts_type"), "contracts", ["type"], unique=False)
    op.create_index(op.f("ix_contracts_status"), "contracts", ["status"], unique=False)

    op.create_table(
        "contract_versions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "contract_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "contracts.id",
                name=op.f("fk_contract_versions_contract_id_contracts"),
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("clauses", JSONType, nullable=False),
        sa.Column("changes", JSONType, nullable=False),
        sa.Column(
            "created_by",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "users.id", name=op.f("fk_contract_versions_created_by_users"), ondelete="SET NULL"
            ),
            nullable=True,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint(
            "contract_id", "version", name="uq_contract_versions_contract_version"
        ),
    )
    op.create_index(
        op.f("ix_contract_versions_contract_id"),
        "contract_versions",
        ["contract_id"],
        unique=False,
    )

    op.create_table(
        "contract_analyses",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "contract_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "contracts.id",
                name=op.f("fk_contract_analyses_contract_id_contracts"),
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "users.id", name=op.f("fk_contract_analyses_user_id_users"), ondelete="CASCADE"
            ),
            nullable=False,
        ),
        sa.Column("risk_score", sa.Integer(), nullable=False),
        sa.Column("completeness", sa.Integer(), nullable=False),
        sa.Column("issues", JSONType, nullable=False),
        sa.Column("strengths", JSONType, nullable=False),
        sa.Column("weaknesses", JSONType, nullable=False),
        sa.Column("recommendations", JSONType, nullable=False),
        sa.Column("compliant_with_indian_law", sa.Boolean(), nullable=False),
        sa.Column("analysis_metadata", JSONType, nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint(
            "risk_score BETWEEN 1 AND 100",
            name=op.f("ck_contract_analyses_contract_analyses_risk_score_range"),
        ),
        sa.CheckConstraint(
            "completeness BETWEEN 1 AND 100",
            name=op.f("ck_contract_analyses_contract_analyses_completeness_range"),
        ),
    )
    op.create_index(
        op.f("ix_contract_analyses_contract_id"),
        "contract_analyses",
        ["contract_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_contract_analyses_user_id"), "contract_analyses", ["user_id"], unique=False
    )

    op.create_table(
        "share_links",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "contract_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "contracts.id",
                name=op.f("fk_share_links_contract_id_contracts"),
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column(
            "created_by",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "users.id", name=op.f("fk_share_links_created_by_users"), ondelete="CASCADE"
            ),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("token", name=op.f("uq_share_links_token")),
    )
    op.create_index(
        op.f("ix_share_links_contract_id"), "share_links", ["contract_id"], unique=False
    )

    op.create_table(
        "document_activities",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "contract_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "contracts.id",
                name=op.f("fk_document_activities_contract_id_contracts"),
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                "users.id", name=op.f("fk_document_activities_user_id_users"), ondelete="SET NULL"
            ),
            nullable=True,
        ),
        sa.Column("activity_type", sa.String(length=32), nullable=False),
        sa.Column("metadata", JSONType, nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index(
        op.f("ix_document_activities_contract_id"),
        "document_activities",
        ["contract_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_document_activities_contract_id"), table_name="document_activities")
    op.drop_table("document_activities")

    op.drop_index(op.f("ix_share_links_contract_id"), table_name="share_links")
    op.drop_table("share_links")

    op.drop_index(op.f("ix_contract_analyses_user_id"), table_name="contract_analyses")
    op.drop_index(op.f("ix_contract_analyses_contract_id"), table_name="contract_analyses")
    op.drop_table("contract_analyses")

    op.drop_index(op.f("ix_contract_versions_contract_id"), table_name="contract_versions")
    op.drop_table("contract_versions")

    op.drop_index(op.f("ix_contracts_status"), table_name="contracts")
    op.drop_index(op.f("ix_contracts_type"), table_name="contracts")
    op.drop_index(op.f("ix_contracts_title"), table_name="contracts")
    op.drop_index(op.f("ix_contracts_user_id"), table_name="contracts")
    op.drop_table("contracts")

    op.drop_index(op.f("ix_templates_is_public"), table_name="templates")
    op.drop_index(op.f("ix_templates_type"), table_name="templates")
    op.drop_index(op.f("ix_templates_user_id"), table_name="templates")
    op.drop_table("templates")

    op.drop_table("users")
