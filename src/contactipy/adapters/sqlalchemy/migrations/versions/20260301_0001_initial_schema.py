"""Initial schema: contacts and the sync queue.

Revision ID: 0001
Revises:
Create Date: 2026-03-01
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_QUEUE_STATUSES = ("pending", "approved", "rejected", "syncing", "synced", "failed")
_QUEUE_OPERATIONS = ("create", "update", "delete")
_RECORD_ORIGINS = ("remote", "import", "local")


def upgrade() -> None:
    op.create_table(
        "contact",
        sa.Column("contact_id", sa.String(), nullable=False),
        sa.Column("contact_data", sa.Text(), nullable=False),
        sa.Column("data_hash", sa.String(length=64), nullable=False),
        sa.Column(
            "origin",
            sa.Enum(*_RECORD_ORIGINS, name="record_origin", native_enum=False),
            nullable=False,
        ),
        sa.Column("synced_to_remote", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("contact_id", name=op.f("pk_contact")),
    )
    op.create_index("ix_contact_data_hash", "contact", ["data_hash"])

    op.create_table(
        "sync_queue",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_record_id", sa.String(), nullable=False),
        sa.Column(
            "operation",
            sa.Enum(*_QUEUE_OPERATIONS, name="queue_operation", native_enum=False),
            nullable=False,
        ),
        sa.Column("data_before", sa.Text(), nullable=True),
        sa.Column("data_after", sa.Text(), nullable=True),
        sa.Column("data_hash_after", sa.String(length=64), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*_QUEUE_STATUSES, name="queue_status", native_enum=False),
            nullable=False,
        ),
        sa.Column("reviewed", sa.Boolean(), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("origin_tag", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_sync_queue")),
    )
    op.create_index("ix_sync_queue_status", "sync_queue", ["status"])
    op.create_index("ix_sync_queue_subject_record_id", "sync_queue", ["subject_record_id"])


def downgrade() -> None:
    op.drop_index("ix_sync_queue_subject_record_id", table_name="sync_queue")
    op.drop_index("ix_sync_queue_status", table_name="sync_queue")
    op.drop_table("sync_queue")
    op.drop_index("ix_contact_data_hash", table_name="contact")
    op.drop_table("contact")
