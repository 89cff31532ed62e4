# -*- coding: utf-8 -*-
"""
测试公共夹具
"""

from __future__ import annotations

from typing import Generator, List

import pytest
from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from src.server.auth.models import User
from src.server.database import Base, build_engine
from src.server.scraper.models import Feed
from src.server.scraper.store import SQLFeedStore


@pytest.fixture()
def test_engine(tmp_path):
    """每个测试使用独立的 SQLite 文件库，便于多线程共享。"""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(bind=test_engine, expire_on_commit=False)


@pytest.fixture()
def test_db_session(session_factory) -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture()
def feed_store(session_factory) -> SQLFeedStore:
    return SQLFeedStore(session_factory, backoff_base=60, backoff_max=3600)


@pytest.fixture()
def test_user(test_db_session: Session) -> User:
    user = User(name="alice")
    test_db_session.add(user)
    test_db_session.commit()
    test_db_session.refresh(user)
    return user


@pytest.fixture()
def make_feed(test_db_session: Session, test_user: User):
    """创建订阅源的工厂函数。"""

    def _make(name: str, url: str, **values) -> Feed:
        feed = Feed(name=name, url=url, user_id=test_user.id, **values)
        test_db_session.add(feed)
        test_db_session.commit()
        test_db_session.refresh(feed)
        return feed

    return _make


@pytest.fixture()
def log_records() -> Generator[List[dict], None, None]:
    """收集 loguru 输出的日志记录。"""
    records: List[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
