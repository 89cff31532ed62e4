# -*- coding: utf-8 -*-
"""
抓取模块数据模型

公开接口：
- `Feed`
- `Post`

内部方法：
- 无

文件功能：
- 定义订阅源与文章的 SQLAlchemy ORM 模型。

说明：
- 所有时间字段统一使用 UTC。
- 文章通过 (`feed_id`, `url`) 唯一约束避免重复写入。
- `failure_count` 与 `next_eligible_at` 记录连续失败次数与下次允许抓取的时间。
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.server.database import Base


class Feed(Base):
    __tablename__ = "feeds"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    last_fetched_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=None
    )
    failure_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_eligible_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=None
    )
    last_error: Mapped[Optional[str]] = mapped_column(Text, default=None)

    posts: Mapped[List["Post"]] = relationship(
        "Post",
        back_populates="feed",
        cascade="all, delete-orphan",
    )


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (UniqueConstraint("feed_id", "url", name="uq_posts_feed_url"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, default=None)
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    feed_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("feeds.id", ondelete="CASCADE"),
        nullable=False,
    )

    feed: Mapped["Feed"] = relationship("Feed", back_populates="posts")
