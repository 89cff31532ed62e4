# -*- coding: utf-8 -*-
"""
数据库基础设施

公开接口：
- `Base`
- `build_engine`
- `engine`
- `SessionLocal`
- `get_db`
- `init_db`

文件功能：
- 提供 SQLAlchemy 声明式基类、引擎与会话工厂，供各业务模块的模型与 DAO 复用。
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import server_config


class Base(DeclarativeBase):
    """所有模型的基类"""

    pass


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """根据连接串创建引擎，SQLite 需要允许跨线程使用连接。"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


engine = build_engine(server_config.database_url, server_config.database_echo)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def init_db(bind: Engine | None = None) -> None:
    """创建全部数据表。"""
    # 导入模型以注册到 Base.metadata
    from .auth import models as _auth_models  # noqa: F401
    from .scraper import models as _scraper_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI 依赖：为每个请求提供独立会话。"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
