# -*- coding: utf-8 -*-
"""
抓取模块配置

公开接口：
- `scraper_config`
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScraperConfig(BaseSettings):
    """抓取模块配置"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # 调度配置
    scraper_concurrency: int = Field(
        default=10,
        ge=1,
        title="单轮抓取数量",
        description="每轮调度最多同时抓取的订阅源数量",
    )

    scraper_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        title="调度间隔",
        description="两轮调度之间的固定间隔（秒）",
    )

    scraper_autostart: bool = Field(
        default=True,
        title="随服务启动",
        description="Web 服务启动时是否自动运行调度器",
    )

    # HTTP 请求配置
    scraper_http_timeout: float = Field(
        default=10.0,
        title="HTTP 请求超时时间",
        description="抓取订阅源时 HTTP 客户端的整体超时时间（秒）",
    )

    scraper_user_agent: str = Field(
        default="feedsniff/0.1",
        title="User-Agent",
        description="抓取请求携带的 User-Agent",
    )

    # 失败退避配置
    scraper_backoff_base_seconds: float = Field(
        default=60.0,
        title="退避基数",
        description="订阅源首次失败后推迟的时间（秒），之后每次失败翻倍",
    )

    scraper_backoff_max_seconds: float = Field(
        default=3600.0,
        title="最大退避时间",
        description="单个订阅源推迟抓取的上限（秒）",
    )

    # 业务逻辑配置
    scraper_post_limit: int = Field(
        default=50,
        title="默认文章数量",
        description="查询文章列表时的默认数量限制",
    )


scraper_config = ScraperConfig()
