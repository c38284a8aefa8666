# blogadmin/deps.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from .config import Settings
from .errors import ConnectionFailure, StatementFailure
from .models import Base

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    is_sqlite = settings.database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}

    # SQLite 默认是 SingletonThreadPool，这里显式使用 QueuePool，保证每个请求各自取连接
    eng = create_engine(
        settings.database_url,
        connect_args=connect_args,
        poolclass=QueuePool,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        pool_pre_ping=True,
        future=True,
    )

    if is_sqlite:
        @event.listens_for(eng, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            # 每个物理连接建立时设置一次
            cur = dbapi_connection.cursor()
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            # 外键约束必须开启，否则非法 cate_id / tag_id 不会报错
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA busy_timeout=10000;")
            cur.close()

    logger.info("database engine ready: %s", eng.url.render_as_string(hide_password=True))
    return eng


class Database:
    """连接池 + 会话工厂。显式构造后注入给需要访问数据库的组件。"""

    def __init__(self, settings: Settings):
        self.engine = build_engine(settings)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose(close=True)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """只读会话：用完即关闭，连接归还连接池。"""
        db: Session = self.session_factory()
        try:
            _checkout(db)
            try:
                yield db
            except sa_exc.StatementError as exc:
                raise StatementFailure(str(exc.orig), orig=exc) from exc
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        事务守卫：
          - 块内正常结束 -> commit
          - 任何方式离开（异常、KeyboardInterrupt、生成器被关闭） -> rollback
        语句错误包装为 StatementFailure 抛出，原异常保存在 orig 上。
        """
        db: Session = self.session_factory()
        committed = False
        try:
            _checkout(db)
            try:
                yield db
                db.commit()
                committed = True
            except sa_exc.StatementError as exc:
                raise StatementFailure(str(exc.orig), orig=exc) from exc
        finally:
            if not committed and db.in_transaction():
                logger.warning("transaction rolled back")
                db.rollback()
            db.close()


def _checkout(db: Session) -> None:
    """取出连接并开启事务；失败归为 ConnectionFailure。"""
    try:
        db.connection()
    except (sa_exc.TimeoutError, sa_exc.DBAPIError) as exc:
        raise ConnectionFailure(f"cannot acquire database connection: {exc}", orig=exc) from exc


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI 依赖。正常创建/关闭会话即可。"""
    database: Database = request.app.state.database
    with database.session() as db:
        yield db


def get_store(request: Request):
    return request.app.state.store
