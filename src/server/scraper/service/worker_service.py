# -*- coding: utf-8 -*-
"""
订阅源处理服务

功能：
- 处理单个订阅源：校验地址、标记抓取、抓取解析、逐条写入文章
- 手动刷新指定订阅源

公开接口：
- `process_feed`
- `refresh_feed`

内部方法：
- `_validate_feed_url`
- `_mark_feed_with_error`
- `_record_failure`
- `_ingest_items`

说明：
- 每一步失败只中止当前订阅源（或当前条目），不会影响同一轮的其他订阅源。
- 抓取前先标记为已抓取，同一轮内每个订阅源至多尝试一次。
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable

from fastapi import HTTPException, status
from loguru import logger
from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from . import fetch_service
from .date_service import parse_published_at
from ..errors import (
    DateParseError,
    DuplicateKeyError,
    ParseError,
    StoreError,
    TransportError,
    ValidationError,
)
from ..schemas import FeedItem, FeedSchema
from ..store import FeedStore, SQLFeedStore

_HTTP_URL = TypeAdapter(HttpUrl)


def _validate_feed_url(feed: FeedSchema) -> None:
    """校验订阅源地址，空地址或格式错误时抛出 `ValidationError`。"""
    if not feed.url:
        raise ValidationError("Empty URL", feed.id)
    try:
        _HTTP_URL.validate_python(feed.url)
    except PydanticValidationError as exc:
        message = exc.errors()[0]["msg"] if exc.errors() else str(exc)
        raise ValidationError(f"Invalid URL: {message}", feed.id) from exc


def _record_failure(store: FeedStore, feed: FeedSchema, reason: str) -> None:
    """记录失败并推迟下次抓取。"""
    try:
        store.record_failure(feed.id, reason)
    except StoreError as exc:
        logger.error("记录订阅源失败状态出错：feed_id={}, 错误={}", feed.id, exc)


def _mark_feed_with_error(store: FeedStore, feed: FeedSchema, reason: str) -> None:
    """地址无效的订阅源同样标记为已抓取，避免每轮都被选中。"""
    try:
        store.mark_fetched(feed.id)
    except StoreError as exc:
        logger.error("标记异常订阅源为已抓取失败：feed_id={}, 错误={}", feed.id, exc)
        return
    _record_failure(store, feed, reason)


def _ingest_items(store: FeedStore, feed: FeedSchema, items: Iterable[FeedItem]) -> int:
    """按文档顺序写入条目，返回新增文章数量。"""
    created = 0
    for item in items:
        try:
            published_at = parse_published_at(item.pub_date).astimezone(timezone.utc)
        except DateParseError as exc:
            logger.warning("无法解析发布时间 {!r}：feed={}, 错误={}", item.pub_date, feed.name, exc)
            continue

        now = datetime.now(timezone.utc)
        try:
            store.create_post(
                id=uuid.uuid4(),
                created_at=now,
                updated_at=now,
                title=item.title,
                url=item.link,
                description=item.description or None,
                published_at=published_at,
                feed_id=feed.id,
            )
        except DuplicateKeyError:
            logger.debug("文章已存在，跳过：feed={}, url={}", feed.name, item.link)
            continue
        except StoreError as exc:
            logger.warning("写入文章失败：feed={}, url={}, 错误={}", feed.name, item.link, exc)
            continue

        created += 1
        logger.info("发现新文章 {}：feed={}", item.title, feed.name)
    return created


def process_feed(store: FeedStore, feed: FeedSchema) -> None:
    """处理单个订阅源，结果仅体现在日志与存储中。"""
    try:
        _validate_feed_url(feed)
    except ValidationError as exc:
        logger.error(
            "订阅源地址无效：feed={}, feed_id={}, url={!r}, 错误={}",
            feed.name,
            feed.id,
            feed.url,
            exc,
        )
        _mark_feed_with_error(store, feed, str(exc))
        return

    try:
        store.mark_fetched(feed.id)
    except StoreError as exc:
        logger.error("标记订阅源为已抓取失败：feed_id={}, 错误={}", feed.id, exc)
        return

    try:
        document = fetch_service.fetch_feed(feed.url)
    except (TransportError, ParseError) as exc:
        logger.error("抓取订阅源失败：feed={}, url={}, 错误={}", feed.name, feed.url, exc)
        _record_failure(store, feed, str(exc))
        return

    if feed.failure_count:
        try:
            store.record_success(feed.id)
        except StoreError as exc:
            logger.error("重置订阅源失败状态出错：feed_id={}, 错误={}", feed.id, exc)

    created = _ingest_items(store, feed, document.items)
    logger.info(
        "订阅源抓取完成：feed={}, 条目数={}, 新增文章={}",
        feed.name,
        len(document.items),
        created,
    )


def refresh_feed(store: SQLFeedStore, feed_id: uuid.UUID, user_id: uuid.UUID) -> FeedSchema:
    """手动触发一次指定订阅源的抓取。"""
    feed = store.get_feed(feed_id)
    if not feed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feed not found",
        )
    if feed.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Feed belongs to another user",
        )

    process_feed(store, feed)

    refreshed = store.get_feed(feed_id)
    if not refreshed:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Feed disappeared during refresh",
        )
    return refreshed
