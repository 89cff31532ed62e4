# -*- coding: utf-8 -*-
"""
DAO 基类

公开接口：
- `BaseDAO`
"""

from sqlalchemy.orm import Session


class BaseDAO:
    """持有数据库会话的 DAO 基类"""

    def __init__(self, db_session: Session) -> None:
        self.db_session = db_session
