# -*- coding: utf-8 -*-
"""
订阅源抓取模块入口

公开接口：
- `scraper_config`
- `router`
- `FeedScheduler`
- `SQLFeedStore`
- `process_feed`
- `fetch_feed`
- `parse_published_at`

内部方法：
- 无

文件功能：
- 暴露抓取模块的主要能力，供 FastAPI 应用加载调度器与路由。
"""

from typing import Any

from .config import scraper_config

__all__ = [
    "scraper_config",
    "router",
    "FeedScheduler",
    "SQLFeedStore",
    "process_feed",
    "fetch_feed",
    "parse_published_at",
]


def __getattr__(name: str) -> Any:
    """按需加载子模块，避免导入时出现循环依赖。"""
    if name == "router":
        from .router import router as value
    elif name == "FeedScheduler":
        from .scheduler import FeedScheduler as value
    elif name == "SQLFeedStore":
        from .store import SQLFeedStore as value
    elif name in {"process_feed", "fetch_feed", "parse_published_at"}:
        from . import service as service_module

        value = getattr(service_module, name)
    else:
        raise AttributeError(f"module 'src.server.scraper' has no attribute '{name}'")
    return value


def __dir__() -> list[str]:
    return sorted(__all__)
