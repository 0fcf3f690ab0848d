"""initial schema

Revision ID: 5c1d2e7a9b10
Revises:
Create Date: 2026-10-18 09:12:44.517302

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1d2e7a9b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _content_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("modified", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hide", sa.Boolean(), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=True),
        sa.Column("allow_comment", sa.Boolean(), nullable=False),
        sa.Column("comments_index", sa.Integer(), nullable=False),
        sa.Column("read_count", sa.Integer(), nullable=False),
        sa.Column("like_count", sa.Integer(), nullable=False),
    ]


def upgrade() -> None:
    """Create content, comment and analytics tables."""
    op.create_table(
        "category",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("type", sa.Integer(), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("slug"),
    )
    op.create_table(
        "post",
        *_content_columns(),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("category_id", sa.String(length=24), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("copyright", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["category_id"], ["category.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category_id", "slug", name="uq_post_category_slug"),
    )
    op.create_index(op.f("ix_post_category_id"), "post", ["category_id"], unique=False)
    op.create_table(
        "note",
        *_content_columns(),
        sa.Column("nid", sa.Integer(), nullable=False),
        sa.Column("mood", sa.String(length=64), nullable=True),
        sa.Column("weather", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("nid"),
    )
    op.create_table(
        "comment",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("ref_type", sa.String(length=16), nullable=False),
        sa.Column("ref_id", sa.String(length=24), nullable=False),
        sa.Column("parent_id", sa.String(length=24), nullable=True),
        sa.Column("position", sa.Integer(), nullable=True),
        sa.Column("comments_index", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(length=512), nullable=False),
        sa.Column("state", sa.SmallInteger(), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=False),
        sa.Column("mail", sa.String(length=255), nullable=True),
        sa.Column("url", sa.String(length=512), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("agent", sa.String(length=512), nullable=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_comment_ref_id"), "comment", ["ref_id"], unique=False)
    op.create_index(op.f("ix_comment_parent_id"), "comment", ["parent_id"], unique=False)
    op.create_index(op.f("ix_comment_key"), "comment", ["key"], unique=False)
    op.create_table(
        "access_record",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("path", sa.String(length=1024), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("ua", sa.String(length=512), nullable=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_access_record_created"), "access_record", ["created"], unique=False)


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_index(op.f("ix_access_record_created"), table_name="access_record")
    op.drop_table("access_record")
    op.drop_index(op.f("ix_comment_key"), table_name="comment")
    op.drop_index(op.f("ix_comment_parent_id"), table_name="comment")
    op.drop_index(op.f("ix_comment_ref_id"), table_name="comment")
    op.drop_table("comment")
    op.drop_table("note")
    op.drop_index(op.f("ix_post_category_id"), table_name="post")
    op.drop_table("post")
    op.drop_table("category")
