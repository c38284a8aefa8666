import itertools

import pytest
from sqlalchemy import func, select

from blogadmin.config import Settings
from blogadmin.deps import Database
from blogadmin.models import Article, Category, Tag, article_to_tag
from blogadmin.store import ArticleStore

CATEGORIES = {1: "Rust", 2: "Python", 3: "Go"}
TAGS = {1: "web", 2: "db", 3: "async", 4: "orm", 5: "cli"}


def seed(database: Database) -> None:
    """建表并写入固定的分类和标签"""
    database.create_all()
    with database.transaction() as db:
        for cid, name in CATEGORIES.items():
            db.add(Category(id=cid, name=name, created_at=0, updated_at=0))
        for tid, name in TAGS.items():
            db.add(Tag(id=tid, name=name, created_at=0, updated_at=0))


def count_articles(database: Database) -> int:
    with database.session() as db:
        return db.scalar(select(func.count()).select_from(Article))


def count_links(database: Database, article_id=None) -> int:
    stmt = select(func.count()).select_from(article_to_tag)
    if article_id is not None:
        stmt = stmt.where(article_to_tag.c.article_id == article_id)
    with database.session() as db:
        return db.scalar(stmt)


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite:///{tmp_path / 'blog.db'}", secret_key="test-secret-key-with-at-least-32-bytes")


@pytest.fixture
def database(settings):
    database = Database(settings)
    seed(database)
    yield database
    database.dispose()


@pytest.fixture
def store(database):
    # 每次取时间递增 1 秒，保证 created_at 可排序
    return ArticleStore(database, clock=itertools.count(1_700_000_000).__next__)
