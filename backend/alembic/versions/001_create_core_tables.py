"""Create users, videos, tweets, comments and likes

Revision ID: 001
Revises: None
Create Date: 2024-03-01 00:00:00.000000+00:00

Indexes follow the query patterns of the services:
    - videos(is_published, created_at) for the public listing
    - videos.owner_id / tweets.owner_id for per-user listings
    - likes(subject_type, subject_id) for retention deletes
    - uq_likes_user_subject doubles as the toggle lookup index

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(128), nullable=False),
        sa.Column("avatar", sa.String(512), nullable=False, server_default=sa.text("''")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "videos",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("video_file", sa.String(1024), nullable=False),
        sa.Column("thumbnail", sa.String(1024), nullable=False),
        sa.Column("video_file_public_id", sa.String(512), nullable=False, server_default=sa.text("''")),
        sa.Column("thumbnail_public_id", sa.String(512), nullable=False, server_default=sa.text("''")),
        sa.Column("duration", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_videos"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_videos_owner_id_users"),
    )
    op.create_index("ix_videos_owner_id", "videos", ["owner_id"])
    op.create_index("ix_videos_created_at", "videos", ["created_at"])
    op.create_index("idx_videos_published_created", "videos", ["is_published", "created_at"])

    op.create_table(
        "tweets",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tweets"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_tweets_owner_id_users"),
        sa.CheckConstraint("length(trim(content)) > 0", name="ck_tweets_content_not_blank"),
    )
    op.create_index("ix_tweets_owner_id", "tweets", ["owner_id"])
    op.create_index("ix_tweets_created_at", "tweets", ["created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("video_id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], name="fk_comments_video_id_videos"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_comments_owner_id_users"),
    )
    op.create_index("ix_comments_video_id", "comments", ["video_id"])
    op.create_index("ix_comments_created_at", "comments", ["created_at"])

    op.create_table(
        "likes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("liked_by_id", sa.Uuid(), nullable=False),
        sa.Column("subject_type", sa.String(16), nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_likes"),
        sa.ForeignKeyConstraint(["liked_by_id"], ["users.id"], name="fk_likes_liked_by_id_users"),
        sa.UniqueConstraint("liked_by_id", "subject_type", "subject_id", name="uq_likes_user_subject"),
        sa.CheckConstraint(
            "subject_type IN ('video', 'comment', 'tweet')",
            name="ck_likes_subject_type",
        ),
    )
    op.create_index("idx_likes_subject", "likes", ["subject_type", "subject_id"])
    op.create_index("ix_likes_created_at", "likes", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_likes_created_at", table_name="likes")
    op.drop_index("idx_likes_subject", table_name="likes")
    op.drop_table("likes")

    op.drop_index("ix_comments_created_at", table_name="comments")
    op.drop_index("ix_comments_video_id", table_name="comments")
    op.drop_table("comments")

    op.drop_index("ix_tweets_created_at", table_name="tweets")
    op.drop_index("ix_tweets_owner_id", table_name="tweets")
    op.drop_table("tweets")

    op.drop_index("idx_videos_published_created", table_name="videos")
    op.drop_index("ix_videos_created_at", table_name="videos")
    op.drop_index("ix_videos_owner_id", table_name="videos")
    op.drop_table("videos")

    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
