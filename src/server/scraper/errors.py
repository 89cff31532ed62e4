# -*- coding: utf-8 -*-
"""
抓取模块异常

公开接口：
- `ScraperError`
- `ValidationError`
- `TransportError`
- `ParseError`
- `DateParseError`
- `StoreError`
- `DuplicateKeyError`

说明：
- 所有异常只会中止当前订阅源或当前条目的处理，不会终止调度循环。
"""

from __future__ import annotations

import uuid


class ScraperError(RuntimeError):
    """抓取流程异常基类"""

    def __init__(self, message: str, feed_id: uuid.UUID | None = None):
        self.feed_id = feed_id
        super().__init__(message)


class ValidationError(ScraperError):
    """订阅源 URL 为空或格式错误"""


class TransportError(ScraperError):
    """网络错误或请求超时"""


class ParseError(ScraperError):
    """响应内容不是合法的订阅源 XML"""


class DateParseError(ScraperError):
    """发布时间无法按任何已知格式解析"""

    def __init__(self, raw_date: str):
        self.raw_date = raw_date
        super().__init__(f"could not parse date: {raw_date}")


class StoreError(ScraperError):
    """持久化失败"""


class DuplicateKeyError(StoreError):
    """违反唯一约束，条目已存在"""
