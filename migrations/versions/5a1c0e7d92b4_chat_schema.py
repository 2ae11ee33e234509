"""chat schema

Revision ID: 5a1c0e7d92b4
Revises:
Create Date: 2026-10-19 09:12:41.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5a1c0e7d92b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the rooms, roster, messages and holds with their collaborators."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("firstname", sa.Text(), nullable=True),
        sa.Column("lastname", sa.Text(), nullable=True),
        sa.Column("fullname", sa.Text(), nullable=True),
        sa.Column("profile_image_url", sa.Text(), nullable=True),
        sa.Column("chat_mod_status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "community_group",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name_short", sa.Text(), nullable=False),
        sa.Column("name_full", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "membership",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["community_group.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "group_id"),
    )
    op.create_table(
        "chat_room",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("chat_type", sa.String(length=16), nullable=False),
        sa.Column("user1_id", sa.Integer(), nullable=True),
        sa.Column("user2_id", sa.Integer(), nullable=True),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("latest_activity_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_message_count", sa.Integer(), nullable=False),
        sa.Column("invalid_message_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user1_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["user2_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["group_id"], ["community_group.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chat_room_users", "chat_room", ["user1_id", "user2_id", "chat_type"])
    op.create_index("ix_chat_room_group", "chat_room", ["group_id", "chat_type"])

    op.create_table(
        "chat_roster",
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("last_message_seen", sa.Integer(), nullable=True),
        sa.Column("last_typing_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_known_address", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["room_id"], ["chat_room.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("room_id", "user_id"),
    )
    op.create_table(
        "chat_message",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("review_required", sa.Boolean(), nullable=False),
        sa.Column("review_rejected", sa.Boolean(), nullable=False),
        sa.Column("processing_successful", sa.Boolean(), nullable=False),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("seen_by_all", sa.Boolean(), nullable=False),
        sa.Column("mailed_to_all", sa.Boolean(), nullable=False),
        sa.Column("reply_expected", sa.Boolean(), nullable=False),
        sa.Column("reply_received", sa.Boolean(), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False),
        sa.Column("ref_item_type", sa.String(length=16), nullable=True),
        sa.ForeignKeyConstraint(["room_id"], ["chat_room.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["reviewed_by"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chat_message_room", "chat_message", ["room_id", "id"])
    op.create_index(
        "ix_chat_message_review",
        "chat_message",
        ["review_required", "review_rejected", "id"],
    )

    op.create_table(
        "chat_message_hold",
        sa.Column("message_id", sa.Integer(), nullable=False),
        sa.Column("moderator_id", sa.Integer(), nullable=False),
        sa.Column("held_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["message_id"], ["chat_message.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["moderator_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("message_id"),
    )
    op.create_table(
        "user_nudge",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from_user_id", sa.Integer(), nullable=False),
        sa.Column("to_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["from_user_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["to_user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop the chat schema."""
    op.drop_table("user_nudge")
    op.drop_table("chat_message_hold")
    op.drop_index("ix_chat_message_review", table_name="chat_message")
    op.drop_index("ix_chat_message_room", table_name="chat_message")
    op.drop_table("chat_message")
    op.drop_table("chat_roster")
    op.drop_index("ix_chat_room_group", table_name="chat_room")
    op.drop_index("ix_chat_room_users", table_name="chat_room")
    op.drop_table("chat_room")
    op.drop_table("membership")
    op.drop_table("community_group")
    op.drop_table("user_account")
