# -*- coding: utf-8 -*-
"""
订阅源存储

公开接口：
- `FeedStore`
- `SQLFeedStore`

内部方法：
- `_is_duplicate_key`

文件功能：
- `FeedStore` 描述抓取流程依赖的存储能力；`SQLFeedStore` 基于 SQLAlchemy 实现，
  每次调用使用独立的短会话，可被多个抓取线程共享。
- 在此处将 SQLAlchemy 异常转换为 `DuplicateKeyError` / `StoreError`。
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, List, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .config import scraper_config
from .dao import FeedDAO, PostDAO
from .errors import DuplicateKeyError, StoreError
from .schemas import FeedSchema, PostSchema


class FeedStore(Protocol):
    """抓取流程使用的存储接口"""

    def list_feeds_to_fetch(self, limit: int) -> List[FeedSchema]: ...

    def mark_fetched(self, feed_id: uuid.UUID) -> FeedSchema: ...

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
    ) -> PostSchema: ...

    def record_failure(self, feed_id: uuid.UUID, reason: str) -> None: ...

    def record_success(self, feed_id: uuid.UUID) -> None: ...


def _is_duplicate_key(exc: IntegrityError) -> bool:
    """判断是否为唯一约束冲突（兼容 PostgreSQL 与 SQLite）。"""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == "23505":
        return True
    if getattr(orig, "sqlstate", None) == "23505":
        return True
    message = str(orig).lower()
    return "duplicate key" in message or "unique constraint" in message


class SQLFeedStore:
    """基于 SQLAlchemy 的订阅源存储"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        backoff_base: float = scraper_config.scraper_backoff_base_seconds,
        backoff_max: float = scraper_config.scraper_backoff_max_seconds,
    ) -> None:
        self.session_factory = session_factory
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max

    def list_feeds_to_fetch(self, limit: int) -> List[FeedSchema]:
        try:
            with self.session_factory() as db:
                feeds = FeedDAO(db).list_next_to_fetch(limit, datetime.now(timezone.utc))
                return [FeedSchema.model_validate(feed) for feed in feeds]
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to list feeds to fetch: {exc}") from exc

    def get_feed(self, feed_id: uuid.UUID) -> FeedSchema | None:
        try:
            with self.session_factory() as db:
                feed = FeedDAO(db).get_by_id(feed_id)
                return FeedSchema.model_validate(feed) if feed else None
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to load feed: {exc}", feed_id) from exc

    def mark_fetched(self, feed_id: uuid.UUID) -> FeedSchema:
        try:
            with self.session_factory() as db:
                feed = FeedDAO(db).mark_fetched(feed_id, datetime.now(timezone.utc))
                if not feed:
                    raise StoreError(f"feed {feed_id} not found", feed_id)
                return FeedSchema.model_validate(feed)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to mark feed as fetched: {exc}", feed_id) from exc

    def record_failure(self, feed_id: uuid.UUID, reason: str) -> None:
        try:
            with self.session_factory() as db:
                FeedDAO(db).record_failure(
                    feed_id,
                    reason=reason,
                    now=datetime.now(timezone.utc),
                    backoff_base=self.backoff_base,
                    backoff_max=self.backoff_max,
                )
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to record feed failure: {exc}", feed_id) from exc

    def record_success(self, feed_id: uuid.UUID) -> None:
        try:
            with self.session_factory() as db:
                FeedDAO(db).record_success(feed_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to reset feed failures: {exc}", feed_id) from exc

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
    ) -> PostSchema:
        with self.session_factory() as db:
            try:
                post = PostDAO(db).create_post(
                    id=id,
                    created_at=created_at,
                    updated_at=updated_at,
                    title=title,
                    url=url,
                    description=description,
                    published_at=published_at,
                    feed_id=feed_id,
                )
                return PostSchema.model_validate(post)
            except IntegrityError as exc:
                db.rollback()
                if _is_duplicate_key(exc):
                    raise DuplicateKeyError(
                        f"post already exists: {url}", feed_id
                    ) from exc
                raise StoreError(f"failed to create post: {exc}", feed_id) from exc
            except SQLAlchemyError as exc:
                db.rollback()
                raise StoreError(f"failed to create post: {exc}", feed_id) from exc

    def list_posts(self, feed_id: uuid.UUID, limit: int) -> List[PostSchema]:
        try:
            with self.session_factory() as db:
                posts = PostDAO(db).list_latest_by_feed(feed_id, limit)
                return [PostSchema.model_validate(post) for post in posts]
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to list posts: {exc}", feed_id) from exc
