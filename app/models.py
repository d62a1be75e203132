from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.permissions import Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class PostType(str, enum.Enum):
    DEV = "dev"
    LIFE = "life"


# Shared by users.role and posts.read_permission.
role_enum = Enum(Role, name="role", values_callable=_enum_values)

# ---------------------------------------------------------------------------
# Association table: Post <-> Tag (many-to-many)
# ---------------------------------------------------------------------------
post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    nickname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    role: Mapped[Role] = mapped_column(role_enum, default=Role.USER, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    # Relationships - lazy="noload" enforces explicit eager loading in services
    posts: Mapped[List["Post"]] = relationship("Post", back_populates="author", lazy="noload")


# ---------------------------------------------------------------------------
# Group / Category
# ---------------------------------------------------------------------------
class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    categories: Mapped[List["Category"]] = relationship(
        "Category", back_populates="group", lazy="noload"
    )


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    group_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True
    )

    group: Mapped[Optional["Group"]] = relationship(
        "Group", back_populates="categories", lazy="noload"
    )
    posts: Mapped[List["Post"]] = relationship("Post", back_populates="category", lazy="noload")


# ---------------------------------------------------------------------------
# Tag
# ---------------------------------------------------------------------------
class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    posts: Mapped[List["Post"]] = relationship(
        "Post", secondary=post_tags, back_populates="tags", lazy="noload"
    )


# ---------------------------------------------------------------------------
# Post
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    __table_args__ = (
        # Newest-first feed, optionally narrowed by read permission
        Index("ix_posts_read_permission_created_at", "read_permission", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    # Structured block JSON, or legacy HTML awaiting migration.
    content: Mapped[str] = mapped_column(Text, nullable=False)
    preview_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[PostType] = mapped_column(
        Enum(PostType, name="post_type", values_callable=_enum_values),
        default=PostType.DEV,
        nullable=False,
    )
    # None = public; otherwise the minimum role required to read.
    read_permission: Mapped[Optional[Role]] = mapped_column(role_enum, nullable=True)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    view: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )

    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Relationships - all lazy="noload" to prevent N+1; use selectinload/joinedload in services
    author: Mapped["User"] = relationship("User", back_populates="posts", lazy="noload")
    category: Mapped[Optional["Category"]] = relationship(
        "Category", back_populates="posts", lazy="noload"
    )
    comments: Mapped[List["Comment"]] = relationship(
        "Comment", back_populates="post", lazy="noload", passive_deletes=True, order_by="Comment.id"
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag", secondary=post_tags, back_populates="posts", lazy="noload"
    )


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )

    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    post: Mapped["Post"] = relationship("Post", back_populates="comments", lazy="noload")
    author: Mapped["User"] = relationship("User", lazy="noload")
