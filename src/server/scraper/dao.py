# -*- coding: utf-8 -*-
"""
抓取模块 DAO

- 公开接口：
    - `FeedDAO`
    - `PostDAO`

内部方法：
- `_normalize_datetime_utc`
- `_backoff_delay`

文件功能：
- 为抓取模块提供面向数据库的访问层，封装订阅源调度查询、抓取标记与文章写入。
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import or_, select

from src.server.dao.dao_base import BaseDAO
from .models import Feed, Post


def _normalize_datetime_utc(value: datetime | None) -> datetime | None:
    """统一将时间转换为 UTC 时区。SQLite 读出的时间不带时区，按 UTC 处理。"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _backoff_delay(failure_count: int, base: float, cap: float) -> timedelta:
    """第 n 次连续失败后的推迟时间：base * 2^(n-1)，不超过 cap。"""
    exponent = max(failure_count - 1, 0)
    # 指数过大时直接取上限，避免浮点溢出
    if exponent >= 32:
        return timedelta(seconds=cap)
    return timedelta(seconds=min(base * (2**exponent), cap))


class FeedDAO(BaseDAO):
    """订阅源 DAO"""

    def get_by_id(self, feed_id: uuid.UUID) -> Feed | None:
        stmt = select(Feed).where(Feed.id == feed_id)
        return self.db_session.scalars(stmt).first()

    def list_next_to_fetch(self, limit: int, now: datetime) -> List[Feed]:
        """按最久未抓取优先（从未抓取的排在最前）返回至多 limit 个订阅源。"""
        stmt = (
            select(Feed)
            .where(
                or_(
                    Feed.next_eligible_at.is_(None),
                    Feed.next_eligible_at <= now,
                )
            )
            .order_by(
                Feed.last_fetched_at.asc().nullsfirst(),
                Feed.created_at.asc(),
            )
            .limit(limit)
        )
        return list(self.db_session.scalars(stmt))

    def mark_fetched(self, feed_id: uuid.UUID, now: datetime) -> Feed | None:
        feed = self.get_by_id(feed_id)
        if not feed:
            return None
        previous = _normalize_datetime_utc(feed.last_fetched_at)
        # 抓取时间只前进不后退
        fetched_at = max(previous, now) if previous else now
        feed.last_fetched_at = fetched_at
        feed.updated_at = fetched_at
        self.db_session.commit()
        self.db_session.refresh(feed)
        return feed

    def record_failure(
        self,
        feed_id: uuid.UUID,
        *,
        reason: str,
        now: datetime,
        backoff_base: float,
        backoff_max: float,
    ) -> Feed | None:
        feed = self.get_by_id(feed_id)
        if not feed:
            return None
        feed.failure_count = (feed.failure_count or 0) + 1
        feed.last_error = reason
        feed.next_eligible_at = now + _backoff_delay(
            feed.failure_count, backoff_base, backoff_max
        )
        self.db_session.commit()
        self.db_session.refresh(feed)
        return feed

    def record_success(self, feed_id: uuid.UUID) -> Feed | None:
        feed = self.get_by_id(feed_id)
        if not feed:
            return None
        if feed.failure_count or feed.next_eligible_at or feed.last_error:
            feed.failure_count = 0
            feed.next_eligible_at = None
            feed.last_error = None
            self.db_session.commit()
            self.db_session.refresh(feed)
        return feed


class PostDAO(BaseDAO):
    """文章 DAO"""

    def create_post(
        self,
        *,
        id: uuid.UUID,
        created_at: datetime,
        updated_at: datetime,
        title: str,
        url: str,
        description: str | None,
        published_at: datetime,
        feed_id: uuid.UUID,
    ) -> Post:
        post = Post(
            id=id,
            created_at=created_at,
            updated_at=updated_at,
            title=title,
            url=url,
            description=description,
            published_at=published_at,
            feed_id=feed_id,
        )
        self.db_session.add(post)
        self.db_session.commit()
        self.db_session.refresh(post)
        return post

    def list_latest_by_feed(self, feed_id: uuid.UUID, limit: int) -> List[Post]:
        stmt = (
            select(Post)
            .where(Post.feed_id == feed_id)
            .order_by(Post.published_at.desc(), Post.created_at.desc())
            .limit(limit)
        )
        return list(self.db_session.scalars(stmt))
