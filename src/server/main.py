# -*- coding: utf-8 -*-
"""
应用入口

公开接口：
- `create_app`
- `app`
- `run`

文件功能：
- 创建 FastAPI 应用，配置跨域访问，挂载抓取模块路由，并在应用生命周期内启停订阅源调度器。
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import server_config
from .database import SessionLocal, init_db
from .scraper import scraper_config
from .scraper.router import router as scraper_router
from .scraper.scheduler import FeedScheduler
from .scraper.store import SQLFeedStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    scheduler: FeedScheduler | None = None
    if scraper_config.scraper_autostart:
        scheduler = FeedScheduler(
            SQLFeedStore(SessionLocal),
            concurrency=scraper_config.scraper_concurrency,
            interval=scraper_config.scraper_interval_seconds,
        )
        await scheduler.start()
    app.state.scheduler = scheduler
    try:
        yield
    finally:
        if scheduler:
            await scheduler.stop()


def create_app() -> FastAPI:
    app = FastAPI(title="feedsniff", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=server_config.cors_allow_origin_regex,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Link"],
        allow_credentials=False,
        max_age=300,
    )
    app.include_router(scraper_router)
    return app


app = create_app()


def run() -> None:
    logger.info("服务启动，端口: {}", server_config.port)
    uvicorn.run(app, host="0.0.0.0", port=server_config.port)


if __name__ == "__main__":
    run()
