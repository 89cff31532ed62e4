# -*- coding: utf-8 -*-
"""
抓取服务模块

此模块提供订阅源抓取相关的所有业务逻辑。
"""

from .date_service import parse_published_at
from .fetch_service import fetch_feed
from .worker_service import process_feed, refresh_feed

__all__ = [
    "parse_published_at",
    "fetch_feed",
    "process_feed",
    "refresh_feed",
]
