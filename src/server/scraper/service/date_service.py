# -*- coding: utf-8 -*-
"""
发布时间解析

功能：
- 按固定优先级尝试多种日期格式解析条目的发布时间，第一个成功的格式胜出

公开接口：
- `DATE_LAYOUTS`
- `parse_published_at`

内部方法：
- `_parse_with_layout`

说明：
- 命名时区按 RFC 822 定义的偏移解析，未知的时区缩写按 UTC 处理。
- 返回带时区的 `datetime`，由调用方统一转换为 UTC。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..errors import DateParseError

# RFC 822 第 5 节定义的时区缩写（小时偏移）
_NAMED_ZONE_OFFSETS = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
}

_ZONE_NAME = re.compile(r"^[A-Z][A-Za-z]{1,4}$")


@dataclass(frozen=True)
class DateLayout:
    """一种日期格式"""

    name: str
    fmt: str
    named_zone: bool = False
    utc: bool = False


DATE_LAYOUTS: tuple[DateLayout, ...] = (
    # Mon, 02 Jan 2006 15:04:05 -0700
    DateLayout("RFC1123Z", "%a, %d %b %Y %H:%M:%S %z"),
    # Mon, 02 Jan 2006 15:04:05 MST
    DateLayout("RFC1123", "%a, %d %b %Y %H:%M:%S", named_zone=True),
    # 02 Jan 06 15:04 MST
    DateLayout("RFC822", "%d %b %y %H:%M", named_zone=True),
    # 02 Jan 06 15:04 -0700
    DateLayout("RFC822Z", "%d %b %y %H:%M %z"),
    DateLayout("RFC1123Z-fallback", "%a, %d %b %Y %H:%M:%S %z"),
    # 2006-01-02T15:04:05Z
    DateLayout("ISO8601-UTC", "%Y-%m-%dT%H:%M:%SZ", utc=True),
)


def _parse_with_layout(value: str, layout: DateLayout) -> datetime:
    """按单个格式解析，失败时抛出 ValueError。"""
    if layout.named_zone:
        body, _, zone = value.rpartition(" ")
        if not body or not _ZONE_NAME.match(zone):
            raise ValueError(f"missing zone name in {value!r}")
        parsed = datetime.strptime(body, layout.fmt)
        offset = _NAMED_ZONE_OFFSETS.get(zone.upper(), 0)
        return parsed.replace(tzinfo=timezone(timedelta(hours=offset)))

    parsed = datetime.strptime(value, layout.fmt)
    if layout.utc:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_published_at(raw_date: str) -> datetime:
    """解析条目发布时间，所有格式均失败时抛出 `DateParseError`。"""
    value = (raw_date or "").strip()
    for layout in DATE_LAYOUTS:
        try:
            return _parse_with_layout(value, layout)
        except ValueError:
            continue
    raise DateParseError(value)
