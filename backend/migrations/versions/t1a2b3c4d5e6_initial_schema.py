"""Initial schema: users, sessions, transactions, numbering, history, handovers

Revision ID: t1a2b3c4d5e6
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "t1a2b3c4d5e6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)
    op.create_index("ix_users_role_active", "users", ["role", "is_active"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(length=255), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_session_tokens_user_id", "session_tokens", ["user_id"], unique=False)
    op.create_index("ix_session_tokens_token_hash", "session_tokens", ["token_hash"], unique=True)
    op.create_index("ix_session_tokens_expires_at", "session_tokens", ["expires_at"], unique=False)
    op.create_index("ix_session_tokens_is_revoked", "session_tokens", ["is_revoked"], unique=False)
    op.create_index("ix_session_tokens_user_active", "session_tokens", ["user_id", "is_revoked"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_number", sa.String(length=32), nullable=False),
        sa.Column("service_type", sa.String(length=128), nullable=False),
        sa.Column("transaction_type", sa.String(length=128), nullable=False),
        sa.Column("client_name", sa.String(length=255), nullable=False),
        sa.Column("passport_id", sa.String(length=64), nullable=False),
        sa.Column("mobile_number", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("receive_date", sa.Date(), nullable=False),
        sa.Column("expected_delivery", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.UniqueConstraint("transaction_number", name="uq_transactions_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transactions_status", "transactions", ["status"], unique=False)
    op.create_index("ix_transactions_assigned_to", "transactions", ["assigned_to"], unique=False)
    op.create_index("ix_transactions_created_by", "transactions", ["created_by"], unique=False)
    op.create_index("ix_transactions_assigned_status", "transactions", ["assigned_to", "status"], unique=False)
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"], unique=False)

    # Per-day numbering counters (TRX-YYYYMMDD-NNNN)
    op.create_table(
        "transaction_sequences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sequence_date", sa.String(length=8), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("sequence_date", name="uq_transaction_sequences_date"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transaction_sequences_sequence_date", "transaction_sequences", ["sequence_date"], unique=False)

    op.create_table(
        "transaction_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("modified_by", sa.Integer(), nullable=False),
        sa.Column("modified_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["modified_by"], ["users.id"]),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transaction_history_transaction_id", "transaction_history", ["transaction_id"], unique=False)
    op.create_index("ix_transaction_history_action", "transaction_history", ["action"], unique=False)
    op.create_index("ix_transaction_history_modified_by", "transaction_history", ["modified_by"], unique=False)
    op.create_index(
        "ix_transaction_history_txn_modified",
        "transaction_history",
        ["transaction_id", "modified_at"],
        unique=False,
    )

    op.create_table(
        "handovers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("from_employee", sa.Integer(), nullable=False),
        sa.Column("to_employee", sa.Integer(), nullable=False),
        sa.Column("supervisor_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["from_employee"], ["users.id"]),
        sa.ForeignKeyConstraint(["to_employee"], ["users.id"]),
        sa.ForeignKeyConstraint(["supervisor_id"], ["users.id"]),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_handovers_from_employee", "handovers", ["from_employee"], unique=False)
    op.create_index("ix_handovers_to_employee", "handovers", ["to_employee"], unique=False)
    op.create_index("ix_handovers_supervisor_id", "handovers", ["supervisor_id"], unique=False)
    op.create_index("ix_handovers_status", "handovers", ["status"], unique=False)
    op.create_index("ix_handovers_to_status", "handovers", ["to_employee", "status"], unique=False)

    op.create_table(
        "handover_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("handover_id", sa.Integer(), nullable=False),
        sa.Column("transaction_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["handover_id"], ["handovers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("handover_id", "transaction_id", name="uq_handover_items_handover_txn"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_handover_items_handover_id", "handover_items", ["handover_id"], unique=False)
    op.create_index("ix_handover_items_transaction_id", "handover_items", ["transaction_id"], unique=False)


def downgrade():
    op.drop_table("handover_items")
    op.drop_table("handovers")
    op.drop_table("transaction_history")
    op.drop_table("transaction_sequences")
    op.drop_table("transactions")
    op.drop_table("session_tokens")
    op.drop_table("users")
