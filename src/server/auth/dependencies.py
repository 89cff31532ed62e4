# -*- coding: utf-8 -*-
"""
鉴权依赖

公开接口：
- `get_api_key`
- `get_current_user`

文件功能：
- 解析 `Authorization: ApiKey <key>` 请求头，并据此加载当前用户。
"""

from __future__ import annotations

from typing import Mapping

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.server.database import get_db
from .models import User


class APIKeyError(ValueError):
    """请求头中的 API Key 缺失或格式错误"""


def get_api_key(headers: Mapping[str, str]) -> str:
    """从请求头中提取 API Key。

    格式：`Authorization: ApiKey {key}`
    """
    value = headers.get("Authorization") or headers.get("authorization")
    if not value:
        raise APIKeyError("API key is missing")

    parts = value.split(" ")
    if len(parts) != 2:
        raise APIKeyError("auth header is malformed")
    if parts[0] != "ApiKey":
        raise APIKeyError("malformed first part of auth header")
    return parts[1]


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """根据 API Key 加载当前用户。"""
    try:
        api_key = get_api_key(request.headers)
    except APIKeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    user = db.scalars(select(User).where(User.api_key == api_key)).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is invalid",
        )
    return user
