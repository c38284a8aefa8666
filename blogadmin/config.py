# blogadmin/config.py
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


DEFAULT_SECRET_KEY = "change-me"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:////tmp/blogadmin.db"
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    secret_key: str = DEFAULT_SECRET_KEY
    token_expire_minutes: int = 60 * 24
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """从环境变量读取配置，未设置的项使用默认值。"""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            pool_size=int(os.getenv("DB_POOL_SIZE", str(cls.pool_size))),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", str(cls.max_overflow))),
            pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", str(cls.pool_timeout))),
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            token_expire_minutes=int(os.getenv("TOKEN_EXPIRE_MINUTES", str(cls.token_expire_minutes))),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
        )

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == DEFAULT_SECRET_KEY
