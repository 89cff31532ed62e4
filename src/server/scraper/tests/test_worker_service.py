# -*- coding: utf-8 -*-
"""
订阅源处理服务测试
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from src.server.scraper.errors import ParseError, StoreError, TransportError
from src.server.scraper.models import Post
from src.server.scraper.schemas import FeedSchema
from src.server.scraper.service.worker_service import process_feed, refresh_feed
from src.server.scraper.store import SQLFeedStore

FEED_URL = "https://example.com/feed.xml"

SAMPLE_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example</title>
    <link>https://example.com</link>
    <description>Example feed</description>
    <item>
      <title>First post</title>
      <link>https://example.com/post-1</link>
      <description>First summary</description>
      <pubDate>Mon, 01 Jan 2024 08:00:00 +0800</pubDate>
    </item>
    <item>
      <title>Broken date</title>
      <link>https://example.com/post-2</link>
      <description>Second summary</description>
      <pubDate>sometime last week</pubDate>
    </item>
    <item>
      <title>Third post</title>
      <link>https://example.com/post-3</link>
      <description></description>
      <pubDate>2024-01-03T10:00:00Z</pubDate>
    </item>
  </channel>
</rss>
"""


class CountingStore(SQLFeedStore):
    """记录 mark_fetched 调用次数的存储。"""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.marked: List[uuid.UUID] = []

    def mark_fetched(self, feed_id: uuid.UUID) -> FeedSchema:
        self.marked.append(feed_id)
        return super().mark_fetched(feed_id)


@pytest.fixture()
def counting_store(session_factory) -> CountingStore:
    return CountingStore(session_factory)


@pytest.fixture()
def fetched_urls(monkeypatch: pytest.MonkeyPatch) -> List[str]:
    """替换抓取函数，始终返回示例订阅源。"""
    urls: List[str] = []

    def fake_fetch(url: str) -> bytes:
        urls.append(url)
        return SAMPLE_FEED

    monkeypatch.setattr(
        "src.server.scraper.service.fetch_service._fetch_feed_content", fake_fetch
    )
    return urls


def _posts(db: Session, feed_id: uuid.UUID) -> List[Post]:
    return db.query(Post).filter(Post.feed_id == feed_id).order_by(Post.url).all()


def test_process_feed_inserts_posts(
    counting_store: CountingStore,
    make_feed,
    fetched_urls: List[str],
    test_db_session: Session,
) -> None:
    """成功抓取时写入可解析日期的条目，跳过无法解析的条目。"""
    feed = FeedSchema.model_validate(make_feed("Example", FEED_URL))

    process_feed(counting_store, feed)

    assert fetched_urls == [FEED_URL]
    assert counting_store.marked == [feed.id]

    posts = _posts(test_db_session, feed.id)
    assert [post.url for post in posts] == [
        "https://example.com/post-1",
        "https://example.com/post-3",
    ]
    first, third = posts
    assert first.title == "First post"
    assert first.description == "First summary"
    published = first.published_at.replace(tzinfo=first.published_at.tzinfo or timezone.utc)
    assert published == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
    assert third.description is None


def test_process_feed_skips_unparsable_date_with_warning(
    feed_store: SQLFeedStore,
    make_feed,
    fetched_urls: List[str],
    log_records: list,
) -> None:
    """无法解析的日期只跳过该条目并记录一条警告。"""
    feed = FeedSchema.model_validate(make_feed("Example", FEED_URL))

    process_feed(feed_store, feed)

    warnings = [r for r in log_records if r["level"].name == "WARNING"]
    assert len(warnings) == 1
    assert "sometime last week" in warnings[0]["message"]

    summary = [r for r in log_records if "条目数=3" in r["message"]]
    assert len(summary) == 1
    assert "新增文章=2" in summary[0]["message"]


def test_process_feed_twice_stores_posts_once(
    feed_store: SQLFeedStore,
    make_feed,
    fetched_urls: List[str],
    test_db_session: Session,
    log_records: list,
) -> None:
    """重复抓取相同条目不会写入重复文章，也不视为错误。"""
    feed = FeedSchema.model_validate(make_feed("Example", FEED_URL))

    process_feed(feed_store, feed)
    process_feed(feed_store, feed)

    assert len(fetched_urls) == 2
    assert len(_posts(test_db_session, feed.id)) == 2
    assert not [r for r in log_records if r["level"].name == "ERROR"]


def test_process_feed_empty_url_never_fetches(
    counting_store: CountingStore,
    make_feed,
    fetched_urls: List[str],
) -> None:
    """空地址的订阅源不会抓取，且只标记一次。"""
    feed = FeedSchema.model_validate(make_feed("Empty", ""))

    process_feed(counting_store, feed)

    assert fetched_urls == []
    assert counting_store.marked == [feed.id]
    stored = counting_store.get_feed(feed.id)
    assert stored.last_fetched_at is not None
    assert stored.failure_count == 1
    assert stored.last_error == "Empty URL"


@pytest.mark.parametrize("url", ["not a url", "ftp://example.com/feed.xml", "http://"])
def test_process_feed_malformed_url_never_fetches(
    counting_store: CountingStore,
    make_feed,
    fetched_urls: List[str],
    url: str,
) -> None:
    """格式错误的地址同样标记为已抓取并记录失败。"""
    feed = FeedSchema.model_validate(make_feed("Malformed", url))

    process_feed(counting_store, feed)

    assert fetched_urls == []
    assert counting_store.marked == [feed.id]
    stored = counting_store.get_feed(feed.id)
    assert stored.failure_count == 1
    assert stored.last_error.startswith("Invalid URL")


@pytest.mark.parametrize(
    "error", [TransportError("timed out"), ParseError("malformed feed")]
)
def test_process_feed_fetch_failure_keeps_claim(
    monkeypatch: pytest.MonkeyPatch,
    counting_store: CountingStore,
    make_feed,
    test_db_session: Session,
    error: Exception,
) -> None:
    """抓取失败时订阅源保持已抓取状态，并推迟下次抓取。"""

    def fake_fetch(url: str):
        raise error

    monkeypatch.setattr(
        "src.server.scraper.service.fetch_service.fetch_feed", fake_fetch
    )
    feed = FeedSchema.model_validate(make_feed("Flaky", FEED_URL))

    process_feed(counting_store, feed)

    assert counting_store.marked == [feed.id]
    stored = counting_store.get_feed(feed.id)
    assert stored.last_fetched_at is not None
    assert stored.failure_count == 1
    assert _posts(test_db_session, feed.id) == []


def test_process_feed_success_resets_failures(
    feed_store: SQLFeedStore,
    make_feed,
    fetched_urls: List[str],
) -> None:
    """之前失败过的订阅源抓取成功后清除失败状态。"""
    feed = FeedSchema.model_validate(
        make_feed("Recovered", FEED_URL, failure_count=2, last_error="timed out")
    )

    process_feed(feed_store, feed)

    stored = feed_store.get_feed(feed.id)
    assert stored.failure_count == 0
    assert stored.last_error is None


def test_process_feed_store_error_skips_only_that_item(
    session_factory,
    make_feed,
    fetched_urls: List[str],
    test_db_session: Session,
    log_records: list,
) -> None:
    """非重复类的写入错误只跳过当前条目。"""

    class FailingStore(SQLFeedStore):
        def create_post(self, **values):
            if values["url"] == "https://example.com/post-1":
                raise StoreError("connection reset")
            return super().create_post(**values)

    store = FailingStore(session_factory)
    feed = FeedSchema.model_validate(make_feed("Example", FEED_URL))

    process_feed(store, feed)

    assert [post.url for post in _posts(test_db_session, feed.id)] == [
        "https://example.com/post-3"
    ]
    warnings = [r for r in log_records if r["level"].name == "WARNING"]
    assert any("connection reset" in r["message"] for r in warnings)


def test_process_feed_mark_failure_stops_processing(
    session_factory,
    make_feed,
    fetched_urls: List[str],
) -> None:
    """无法标记订阅源时不再抓取。"""

    class BrokenStore(SQLFeedStore):
        def mark_fetched(self, feed_id):
            raise StoreError("database is down")

    feed = FeedSchema.model_validate(make_feed("Example", FEED_URL))

    process_feed(BrokenStore(session_factory), feed)

    assert fetched_urls == []


def test_refresh_feed_runs_worker(
    feed_store: SQLFeedStore,
    make_feed,
    fetched_urls: List[str],
    test_user,
) -> None:
    """手动刷新会执行一次完整的抓取流程。"""
    feed = make_feed("Example", FEED_URL)

    refreshed = refresh_feed(feed_store, feed.id, test_user.id)

    assert refreshed.id == feed.id
    assert refreshed.last_fetched_at is not None
    assert fetched_urls == [FEED_URL]
    assert len(feed_store.list_posts(feed.id, 10)) == 2


def test_refresh_feed_not_found(feed_store: SQLFeedStore, test_user) -> None:
    with pytest.raises(HTTPException) as excinfo:
        refresh_feed(feed_store, uuid.uuid4(), test_user.id)
    assert excinfo.value.status_code == 404


def test_refresh_feed_other_user(
    feed_store: SQLFeedStore, make_feed, fetched_urls: List[str]
) -> None:
    feed = make_feed("Example", FEED_URL)
    with pytest.raises(HTTPException) as excinfo:
        refresh_feed(feed_store, feed.id, uuid.uuid4())
    assert excinfo.value.status_code == 403
    assert fetched_urls == []
