# -*- coding: utf-8 -*-
"""
抓取模块路由

公开接口：
- GET /v1/healthz
- GET /v1/error
- GET /v1/feeds/{feed_id}/posts
- POST /v1/feeds/{feed_id}/fetch

内部方法：
- `get_feed_store`

文件功能：
- 暴露健康检查接口，以及查看订阅源文章、手动触发抓取的 REST API。
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.server.auth.dependencies import get_current_user
from src.server.auth.models import User
from src.server.database import SessionLocal
from .config import scraper_config
from .schemas import FeedSchema, HealthResponse, PostSchema
from .service import refresh_feed
from .store import SQLFeedStore

router = APIRouter(prefix="/v1", tags=["Scraper"])


def get_feed_store() -> SQLFeedStore:
    """提供基于全局会话工厂的存储实例。"""
    return SQLFeedStore(SessionLocal)


@router.get(
    "/healthz",
    response_model=HealthResponse,
    summary="健康检查",
)
def healthz_api() -> HealthResponse:
    """服务就绪时返回空对象。"""
    return HealthResponse()


@router.get(
    "/error",
    summary="错误响应示例",
    response_description="始终返回 400 错误",
)
def error_api() -> None:
    """用于验证错误响应格式。"""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Something went wrong",
    )


@router.get(
    "/feeds/{feed_id}/posts",
    response_model=list[PostSchema],
    summary="获取订阅源文章",
    response_description="按发布时间倒序返回最新文章",
)
def list_posts_api(
    feed_id: uuid.UUID,
    limit: int = Query(
        default=scraper_config.scraper_post_limit,
        ge=1,
        le=200,
        description="返回的最大文章数量",
    ),
    store: SQLFeedStore = Depends(get_feed_store),
) -> list[PostSchema]:
    """返回订阅源的最新文章。"""
    if not store.get_feed(feed_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feed not found",
        )
    return store.list_posts(feed_id, limit)


@router.post(
    "/feeds/{feed_id}/fetch",
    response_model=FeedSchema,
    summary="立即抓取订阅源",
    response_description="抓取指定订阅源并返回其最新状态",
)
def fetch_feed_api(
    feed_id: uuid.UUID,
    store: SQLFeedStore = Depends(get_feed_store),
    current_user: User = Depends(get_current_user),
) -> FeedSchema:
    """手动触发订阅源抓取，仅限订阅源所有者。"""
    return refresh_feed(store, feed_id, current_user.id)
