# -*- coding: utf-8 -*-
"""
抓取模块 Pydantic 模型

- 公开接口：
    - `FeedItem`
    - `FeedDocument`
    - `FeedSchema`
    - `PostSchema`
    - `HealthResponse`

内部方法：
- `_ensure_utc`

文件功能：
- `FeedItem` / `FeedDocument` 描述一次抓取解析出的订阅源文档，仅在单轮处理中存在。
- `FeedSchema` / `PostSchema` 为 API 层返回的数据模型。
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _ensure_utc(value: datetime | None) -> datetime | None:
    """数据库读出的无时区时间按 UTC 处理。"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FeedItem(BaseModel):
    """订阅源中的单个条目"""

    title: str = ""
    link: str = ""
    description: Optional[str] = None
    pub_date: str = Field(default="", description="原始发布时间字符串")


class FeedDocument(BaseModel):
    """解析后的订阅源文档"""

    title: str = ""
    link: str = ""
    description: str = ""
    language: str = ""
    items: List[FeedItem] = Field(default_factory=list)


class FeedSchema(BaseModel):
    """订阅源信息"""

    id: uuid.UUID
    name: str
    url: str
    user_id: uuid.UUID
    last_fetched_at: Optional[datetime] = None
    failure_count: int = 0
    next_eligible_at: Optional[datetime] = None
    last_error: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("last_fetched_at", "next_eligible_at", mode="after")
    @classmethod
    def normalize_times(cls, value: datetime | None) -> datetime | None:
        return _ensure_utc(value)


class PostSchema(BaseModel):
    """文章信息"""

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    title: str
    url: str
    description: Optional[str] = None
    published_at: datetime
    feed_id: uuid.UUID

    model_config = {"from_attributes": True}

    @field_validator("created_at", "updated_at", "published_at", mode="after")
    @classmethod
    def normalize_times(cls, value: datetime | None) -> datetime | None:
        return _ensure_utc(value)


class HealthResponse(BaseModel):
    """健康检查响应"""

    model_config = {"extra": "forbid"}
