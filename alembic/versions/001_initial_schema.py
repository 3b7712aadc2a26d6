"""Initial schema: users, audit_logs, election_state, voters, candidates, votes.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("user_id", sa.Uuid, nullable=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_ids", sa.JSON, nullable=True),
        sa.Column("request_ip", sa.String(45), nullable=True),
        sa.Column("request_endpoint", sa.String(255), nullable=True),
        sa.Column("request_metadata", sa.JSON, nullable=True),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_resource_type", "audit_logs", ["resource_type"])

    election_state = op.create_table(
        "election_state",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("phase", sa.String(20), nullable=False, server_default="SETUP"),
        sa.Column("election_title", sa.String(200), nullable=False),
        sa.Column("organization_name", sa.String(200), nullable=False),
        sa.Column("sms_api_key", sa.String(255), nullable=True),
        sa.Column("sms_sender_id", sa.String(20), nullable=True),
        sa.Column("enable_auto_schedule", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("verification_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voting_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voting_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("phase_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("id = 1", name="ck_election_state_singleton"),
        sa.CheckConstraint(
            "phase IN ('SETUP', 'VERIFICATION', 'VOTING', 'ENDED')",
            name="ck_election_state_phase",
        ),
    )
    op.bulk_insert(
        election_state,
        [
            {
                "id": 1,
                "phase": "SETUP",
                "election_title": "General Election",
                "organization_name": "Membership Organization",
                "enable_auto_schedule": False,
            }
        ],
    )

    op.create_table(
        "voters",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("membership_id", sa.String(64), nullable=False),
        sa.Column("membership_id_normalized", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False, server_default=""),
        sa.Column("ward", sa.String(100), nullable=False, server_default=""),
        sa.Column("constituency", sa.String(100), nullable=False, server_default=""),
        sa.Column("county", sa.String(100), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="UNVERIFIED"),
        sa.Column("voting_location", sa.String(100), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("otc_code", sa.String(6), nullable=True),
        sa.Column("otc_issued_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('UNVERIFIED', 'VERIFIED', 'VOTED')", name="ck_voter_status"),
        sa.CheckConstraint("(otc_code IS NULL) = (otc_issued_at IS NULL)", name="ck_voter_otc_pair"),
    )
    op.create_index(
        "uq_voters_membership_id_normalized", "voters", ["membership_id_normalized"], unique=True
    )
    op.create_index("idx_voters_status", "voters", ["status"])
    op.create_index("idx_voters_ward", "voters", ["ward"])

    op.create_table(
        "candidates",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("position", sa.String(100), nullable=False),
        sa.Column("party", sa.String(100), nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column("scope", sa.String(100), nullable=False, server_default="all"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_candidates_position", "candidates", ["position"])

    op.create_table(
        "votes",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("voter_token", sa.String(64), nullable=False),
        sa.Column("selections", sa.JSON, nullable=False),
        sa.Column("cast_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("voter_token", name="uq_votes_voter_token"),
    )


def downgrade() -> None:
    op.drop_table("votes")
    op.drop_index("idx_candidates_position", table_name="candidates")
    op.drop_table("candidates")
    op.drop_index("idx_voters_ward", table_name="voters")
    op.drop_index("idx_voters_status", table_name="voters")
    op.drop_index("uq_voters_membership_id_normalized", table_name="voters")
    op.drop_table("voters")
    op.drop_table("election_state")
    op.drop_index("ix_audit_logs_resource_type", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_user_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_timestamp", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
