"""create_verification_tables

Revision ID: 3f9a1c2e7b10
Revises:
Create Date: 2026-03-01 09:00:00.000000+00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f9a1c2e7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ACTIVE_PREDICATE = "used_at IS NULL AND invalidated_at IS NULL"


def _base_columns() -> list[sa.Column]:
    """Primary key and created_at from BaseModel."""
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create users, verification tokens, rate limit and audit tables."""
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "email",
            sa.String(length=255),
            nullable=False,
            comment="Normalized (lowercase) email address",
        ),
        sa.Column(
            "confirmed_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="When the email address was verified",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "verification_tokens",
        *_base_columns(),
        sa.Column(
            "subject_id",
            sa.Uuid(),
            nullable=False,
            comment="Owning user id (identity store)",
        ),
        sa.Column(
            "token_hash",
            sa.String(length=64),
            nullable=False,
            comment="SHA-256 hex digest of the secret token",
        ),
        sa.Column(
            "token_type",
            sa.String(length=32),
            nullable=False,
            comment="email_verification | password_reset",
        ),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Exclusive expiry (UTC); valid while now < expires_at",
        ),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invalidated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invalidation_reason", sa.String(length=32), nullable=True),
        sa.Column("issued_from_ip", sa.String(length=45), nullable=True),
        sa.Column(
            "attempt_count", sa.Integer(), server_default="0", nullable=False
        ),
        sa.Column(
            "max_attempts", sa.Integer(), server_default="3", nullable=False
        ),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash"),
    )
    op.create_index(
        "ix_verification_tokens_subject_id", "verification_tokens", ["subject_id"]
    )
    op.create_index(
        "ix_verification_tokens_expires_at", "verification_tokens", ["expires_at"]
    )
    op.create_index(
        "idx_verification_tokens_window",
        "verification_tokens",
        ["subject_id", "token_type", "issued_at"],
    )
    # At most one active token per (subject, type)
    op.create_index(
        "uq_verification_tokens_active",
        "verification_tokens",
        ["subject_id", "token_type"],
        unique=True,
        postgresql_where=sa.text(_ACTIVE_PREDICATE),
        sqlite_where=sa.text(_ACTIVE_PREDICATE),
    )

    op.create_table(
        "rate_limit_windows",
        *_base_columns(),
        sa.Column("scope", sa.String(length=32), nullable=False),
        sa.Column("subject_key", sa.String(length=255), nullable=False),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "scope", "subject_key", name="uq_rate_limit_windows_key"
        ),
    )

    op.create_table(
        "rate_limit_attempts",
        *_base_columns(),
        sa.Column("scope", sa.String(length=32), nullable=False),
        sa.Column("subject_key", sa.String(length=255), nullable=False),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_rate_limit_attempts_window",
        "rate_limit_attempts",
        ["scope", "subject_key", "attempted_at"],
    )

    op.create_table(
        "verification_audit_log",
        *_base_columns(),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("token_id", sa.Uuid(), nullable=True),
        sa.Column("source_ip", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_verification_audit_log_action", "verification_audit_log", ["action"]
    )
    op.create_index(
        "ix_verification_audit_log_subject_id",
        "verification_audit_log",
        ["subject_id"],
    )
    op.create_index(
        "ix_verification_audit_log_occurred_at",
        "verification_audit_log",
        ["occurred_at"],
    )
    op.create_index(
        "idx_verification_audit_subject_action",
        "verification_audit_log",
        ["subject_id", "action"],
    )

    # Audit rows are append-only
    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            "CREATE RULE verification_audit_log_no_update AS "
            "ON UPDATE TO verification_audit_log DO INSTEAD NOTHING"
        )
        op.execute(
            "CREATE RULE verification_audit_log_no_delete AS "
            "ON DELETE TO verification_audit_log DO INSTEAD NOTHING"
        )


def downgrade() -> None:
    """Drop all verification tables."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            "DROP RULE IF EXISTS verification_audit_log_no_delete "
            "ON verification_audit_log"
        )
        op.execute(
            "DROP RULE IF EXISTS verification_audit_log_no_update "
            "ON verification_audit_log"
        )
    op.drop_table("verification_audit_log")
    op.drop_index("idx_rate_limit_attempts_window", table_name="rate_limit_attempts")
    op.drop_table("rate_limit_attempts")
    op.drop_table("rate_limit_windows")
    op.drop_index("uq_verification_tokens_active", table_name="verification_tokens")
    op.drop_table("verification_tokens")
    op.drop_table("users")
