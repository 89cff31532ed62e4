# -*- coding: utf-8 -*-
"""
订阅源抓取调度器

功能：
- 按固定频率调度：每轮取出最久未抓取的 N 个订阅源并发处理
- 一轮中所有订阅源处理完毕后才会进入下一轮

公开接口：
- `FeedScheduler`

内部方法：
- `_ensure_executor`
- `_wait_next_tick`
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from .service.worker_service import process_feed
from .store import FeedStore


class FeedScheduler:
    """订阅源调度器类"""

    def __init__(self, store: FeedStore, concurrency: int, interval: float) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.store = store
        self.concurrency = concurrency
        self.interval = interval
        self.is_running = False
        self.scheduler_task: asyncio.Task | None = None
        self.executor: ThreadPoolExecutor | None = None
        self._stop_event: asyncio.Event | None = None

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self.executor is None:
            self.executor = ThreadPoolExecutor(
                max_workers=self.concurrency,
                thread_name_prefix="feed-worker",
            )
        return self.executor

    async def start(self) -> None:
        """启动调度器"""
        if self.is_running:
            logger.warning("订阅源调度器已在运行中")
            return

        self.is_running = True
        self._stop_event = asyncio.Event()
        logger.info(
            f"启动订阅源调度器，并发: {self.concurrency}，间隔: {self.interval} 秒"
        )
        self.scheduler_task = asyncio.create_task(self.run(self._stop_event))

    async def stop(self) -> None:
        """停止调度器"""
        if not self.is_running:
            return

        self.is_running = False
        if self._stop_event:
            self._stop_event.set()
        if self.scheduler_task:
            self.scheduler_task.cancel()
            try:
                await self.scheduler_task
            except asyncio.CancelledError:
                pass
            self.scheduler_task = None
        logger.info("订阅源调度器已停止")

        if self.executor:
            self.executor.shutdown(wait=True)
            self.executor = None

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """调度器主循环：首轮立即执行，之后按固定频率触发，直到 stop_event 被设置。"""
        stop_event = stop_event or asyncio.Event()
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        while not stop_event.is_set():
            try:
                await self.run_tick()
            except Exception:
                logger.exception("订阅源调度出现未预期的异常")

            next_tick += self.interval
            now = loop.time()
            # 本轮耗时超过间隔时，错过的轮次不补，立即开始下一轮
            if next_tick < now:
                next_tick = now
            await self._wait_next_tick(stop_event, next_tick - now)

    @staticmethod
    async def _wait_next_tick(stop_event: asyncio.Event, delay: float) -> None:
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def run_tick(self) -> int:
        """执行一轮调度，返回本轮处理的订阅源数量。"""
        loop = asyncio.get_running_loop()
        executor = self._ensure_executor()

        try:
            feeds = await loop.run_in_executor(
                executor, self.store.list_feeds_to_fetch, self.concurrency
            )
        except Exception as e:
            logger.error(f"获取待抓取订阅源失败: {e}")
            return 0

        if not feeds:
            logger.debug("当前没有需要抓取的订阅源")
            return 0

        logger.info(f"发现 {len(feeds)} 个订阅源需要抓取")
        tasks = [
            loop.run_in_executor(executor, process_feed, self.store, feed)
            for feed in feeds
        ]

        # 等待本轮全部完成
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for feed, result in zip(feeds, results):
            if isinstance(result, Exception):
                logger.error(f"抓取订阅源 {feed.name} 时出错: {result}")

        return len(feeds)
