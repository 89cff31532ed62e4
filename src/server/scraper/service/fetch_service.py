# -*- coding: utf-8 -*-
"""
订阅源抓取服务

功能：
- 以固定超时时间请求订阅源地址
- 将响应内容解析为 `FeedDocument`

公开接口：
- `fetch_feed`

内部方法：
- `_build_client`
- `_fetch_feed_content`
- `_parse_feed_document`
- `_entry_link`

说明：
- 不做任何重试，失败的订阅源等待下一轮调度。
- 条目内容按原样保留，不清洗 HTML、不改写相对地址。
"""

from __future__ import annotations

import feedparser  # type: ignore
import httpx

from ..config import scraper_config
from ..errors import ParseError, TransportError
from ..schemas import FeedDocument, FeedItem

HTTP_TIMEOUT = scraper_config.scraper_http_timeout
USER_AGENT = scraper_config.scraper_user_agent


def fetch_feed(feed_url: str) -> FeedDocument:
    """抓取并解析订阅源。"""
    content = _fetch_feed_content(feed_url)
    return _parse_feed_document(content)


def _build_client() -> httpx.Client:
    """HTTP 客户端，超时时间与单次请求无关。"""
    return httpx.Client(
        timeout=HTTP_TIMEOUT,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


def _fetch_feed_content(feed_url: str) -> bytes:
    """抓取订阅源原始内容。"""
    try:
        with _build_client() as client:
            response = client.get(feed_url)
            response.raise_for_status()
            return response.content
    except httpx.HTTPError as exc:
        raise TransportError(f"failed to fetch {feed_url}: {exc}") from exc


def _parse_feed_document(content: bytes) -> FeedDocument:
    """解析订阅源 XML，返回频道信息与条目列表。"""
    parsed = feedparser.parse(content, sanitize_html=False, resolve_relative_uris=False)
    if parsed.bozo and not isinstance(
        parsed.bozo_exception, feedparser.CharacterEncodingOverride
    ):
        raise ParseError(f"malformed feed: {parsed.bozo_exception}")
    if not parsed.version:
        raise ParseError("document is not a recognized feed")

    channel = parsed.feed
    items = [
        FeedItem(
            title=entry.get("title") or "",
            link=_entry_link(entry),
            description=entry.get("summary") or None,
            pub_date=entry.get("published") or entry.get("updated") or "",
        )
        for entry in parsed.entries
    ]
    return FeedDocument(
        title=channel.get("title") or "",
        link=channel.get("link") or "",
        description=channel.get("subtitle") or "",
        language=channel.get("language") or "",
        items=items,
    )


def _entry_link(entry) -> str:
    """只取条目中真实的 `<link>` 元素，不使用 guid 代替。"""
    for link in entry.get("links") or []:
        if link.get("rel", "alternate") == "alternate" and link.get("href"):
            return link["href"]
    return ""
