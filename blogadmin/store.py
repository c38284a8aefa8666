# blogadmin/store.py
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.orm import Session

from . import schemas
from .deps import Database
from .errors import NotFound
from .models import Article, Category, article_to_tag

logger = logging.getLogger(__name__)

# 最热文章条数
HOT_LIST_SIZE = 9

# ArticleOut 对应的列
_ARTICLE_COLUMNS = (
    Article.id,
    Article.title,
    Article.description,
    Article.content,
    Article.cate_id,
    Article.istop,
    Article.created_at,
    Article.updated_at,
)


def _now() -> int:
    return int(time.time())


class ArticleStore:
    """
    文章及其标签关联的读写。
    写操作（create / update / remove）各自在一个事务内完成，任一语句失败整体回滚。
    不缓存任何行，每次读取都直接查询数据库。
    """

    def __init__(self, database: Database, clock: Callable[[], int] = _now):
        self.database = database
        self.clock = clock

    # ---------- 查询 ----------

    def find_total(self) -> int:
        """获取全部文章数量"""
        with self.database.session() as db:
            return db.scalar(select(func.count()).select_from(Article))

    def find_page(self, offset: int, limit: int) -> List[schemas.ArticleVo]:
        """
        分页查询文章列表（带分类名）。
        不带 ORDER BY，顺序由数据库决定，写入前后翻页不保证稳定。
        """
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must be non-negative")
        if limit == 0:
            return []
        stmt = (
            select(*_ARTICLE_COLUMNS, Category.name.label("cate_name"))
            .join(Category, Article.cate_id == Category.id)
            .offset(offset)
            .limit(limit)
        )
        with self.database.session() as db:
            rows = db.execute(stmt).mappings().all()
        return [schemas.ArticleVo.model_validate(dict(row)) for row in rows]

    def find_by_id(self, article_id: int) -> Optional[schemas.ArticleOut]:
        with self.database.session() as db:
            article = self._get(db, article_id)
        return schemas.ArticleOut.model_validate(article) if article else None

    def find_editing_by_id(self, article_id: int) -> Optional[schemas.ArticleEditVo]:
        """编辑页使用：文章字段 + 逗号拼接的标签 id（无标签时为 None）"""
        stmt = (
            select(*_ARTICLE_COLUMNS, func.group_concat(article_to_tag.c.tag_id).label("tags"))
            .select_from(Article)
            .outerjoin(article_to_tag, Article.id == article_to_tag.c.article_id)
            .where(Article.id == article_id)
            .group_by(Article.id)
        )
        with self.database.session() as db:
            row = db.execute(stmt).mappings().first()
        if row is None:
            return None
        data = dict(row)
        if data["tags"] is not None:
            data["tags"] = str(data["tags"])
        return schemas.ArticleEditVo.model_validate(data)

    def find_by_category(self, cate_id: int) -> List[schemas.ArticleOut]:
        """分类下的全部文章"""
        stmt = (
            select(Article)
            .join(Category, Article.cate_id == Category.id)
            .where(Category.id == cate_id)
        )
        return self._fetch_list(stmt)

    def find_by_tag(self, tag_id: int) -> List[schemas.ArticleOut]:
        """标签下的全部文章；重复关联不会产生重复文章"""
        linked = select(article_to_tag.c.article_id).where(article_to_tag.c.tag_id == tag_id)
        return self._fetch_list(select(Article).where(Article.id.in_(linked)))

    def hot_list(self) -> List[schemas.ArticleOut]:
        """最热文章：按创建时间倒序，最多 HOT_LIST_SIZE 条"""
        stmt = select(Article).order_by(Article.created_at.desc()).limit(HOT_LIST_SIZE)
        return self._fetch_list(stmt)

    def search(self, keyword: str) -> List[schemas.ArticleOut]:
        """前台搜索：标题包含 keyword（大小写是否敏感取决于数据库排序规则）"""
        stmt = select(Article).where(Article.title.contains(keyword, autoescape=True))
        return self._fetch_list(stmt)

    def admin_search(self, title: str, category: int) -> List[schemas.ArticleOut]:
        """后台搜索：标题关键字 / 分类 id 两个可选条件，四种组合分别处理"""
        if title == "" and category != 0:
            stmt = select(Article).where(Article.cate_id == category)
        elif title == "" and category == 0:
            stmt = select(Article)
        elif title != "" and category == 0:
            stmt = select(Article).where(Article.title.contains(title, autoescape=True))
        else:
            stmt = select(Article).where(
                Article.title.contains(title, autoescape=True),
                Article.cate_id == category,
            )
        return self._fetch_list(stmt)

    # ---------- 写入 ----------

    def create(self, article: schemas.ArticleCreate, tag_ids: Sequence[int]) -> int:
        """新增文章并写入标签关联，返回新文章 id"""
        now = self.clock()
        with self.database.transaction() as db:
            # 1) 插入文章，flush 后拿到自增 id
            db_article = Article(**article.model_dump(), created_at=now, updated_at=now)
            db.add(db_article)
            db.flush()
            new_id = db_article.id
            # 2) 逐个插入关联，不去重
            self._insert_links(db, new_id, tag_ids)
        logger.info("article %s created with %d tag link(s)", new_id, len(tag_ids))
        return new_id

    def update(self, article_id: int, fields: schemas.ArticleUpdate, tag_ids: Sequence[int]) -> None:
        """更新文章：标签关联整体替换，而不是合并"""
        if self.find_by_id(article_id) is None:
            raise NotFound(f"article {article_id} does not exist")

        with self.database.transaction() as db:
            # 1) 删除旧关联
            self._delete_links(db, article_id)
            # 2) 写入新关联
            self._insert_links(db, article_id, tag_ids)
            # 3) 更新文章字段
            db.execute(
                update(Article)
                .where(Article.id == article_id)
                .values(
                    title=fields.title,
                    description=fields.description,
                    content=fields.content,
                    cate_id=fields.cate_id,
                    updated_at=self.clock(),
                )
            )
        logger.info("article %s updated, tags=%s", article_id, list(tag_ids))

    def remove(self, article_id: int) -> None:
        """删除文章及其全部标签关联（物理删除）"""
        if self.find_by_id(article_id) is None:
            raise NotFound(f"article {article_id} does not exist")

        with self.database.transaction() as db:
            self._delete_links(db, article_id)
            db.execute(delete(Article).where(Article.id == article_id))
        logger.info("article %s removed", article_id)

    # ---------- 内部工具 ----------

    @staticmethod
    def _get(db: Session, article_id: int) -> Optional[Article]:
        return db.execute(select(Article).where(Article.id == article_id)).scalar_one_or_none()

    @staticmethod
    def _insert_links(db: Session, article_id: int, tag_ids: Sequence[int]) -> None:
        for tag_id in tag_ids:
            db.execute(insert(article_to_tag).values(article_id=article_id, tag_id=tag_id))

    @staticmethod
    def _delete_links(db: Session, article_id: int) -> None:
        db.execute(delete(article_to_tag).where(article_to_tag.c.article_id == article_id))

    def _fetch_list(self, stmt) -> List[schemas.ArticleOut]:
        with self.database.session() as db:
            articles = db.execute(stmt).scalars().all()
        return [schemas.ArticleOut.model_validate(a) for a in articles]
