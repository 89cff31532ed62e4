# -*- coding: utf-8 -*-
"""
用户数据模型

公开接口：
- `User`
- `generate_api_key`

说明：
- 订阅源归属于用户，用户通过 API Key 访问需要鉴权的接口。
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.server.database import Base


def generate_api_key() -> str:
    """生成 64 位十六进制 API Key。"""
    return secrets.token_hex(32)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    api_key: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, default=generate_api_key
    )
