# blogadmin/errors.py
from __future__ import annotations

from typing import Optional


class StoreError(Exception):
    """数据访问层错误基类。orig 保存底层 SQLAlchemy 异常（若有）。"""

    def __init__(self, message: str, orig: Optional[BaseException] = None):
        super().__init__(message)
        self.orig = orig


class NotFound(StoreError):
    """按 id 操作时实体不存在；不会开启事务。"""


class ConnectionFailure(StoreError):
    """无法从连接池获取连接或开启事务。"""


class StatementFailure(StoreError):
    """SQL 语句执行失败（约束冲突、语法错误等），所在事务已整体回滚。"""


class ValidationFailure(StoreError):
    """调用方提交的数据不合法，由 HTTP 层抛出。"""
