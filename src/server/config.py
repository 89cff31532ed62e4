# -*- coding: utf-8 -*-
"""
服务级配置

公开接口：
- `server_config`
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """服务配置"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    port: int = Field(
        default=8080,
        title="监听端口",
        description="HTTP 服务监听的端口",
    )

    database_url: str = Field(
        default="sqlite:///./feedsniff.db",
        title="数据库连接串",
        description="SQLAlchemy 使用的数据库 URL",
    )

    database_echo: bool = Field(
        default=False,
        title="输出 SQL",
        description="是否在日志中输出执行的 SQL 语句",
    )

    cors_allow_origin_regex: str = Field(
        default=r"https?://.*",
        title="跨域来源",
        description="允许跨域访问的来源（正则表达式），默认允许任意 http/https 来源",
    )


server_config = ServerConfig()
