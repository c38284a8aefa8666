from sqlalchemy import BigInteger, Boolean, Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class User(Base):
    __tablename__ = "user"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(32), unique=True, index=True, nullable=False)
    password = Column(String(128), nullable=False)
    nickname = Column(String(32), nullable=True)


class Category(Base):
    __tablename__ = "category"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False)
    created_at = Column(BigInteger)
    updated_at = Column(BigInteger)


class Tag(Base):
    __tablename__ = "tag"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False)
    created_at = Column(BigInteger)
    updated_at = Column(BigInteger)


class Article(Base):
    __tablename__ = "article"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(128), nullable=False)
    description = Column(String(255))
    content = Column(Text)
    cate_id = Column(Integer, ForeignKey("category.id"), nullable=False, index=True)
    istop = Column(Boolean, default=False)
    # 时间戳均为 epoch 秒
    created_at = Column(BigInteger)
    updated_at = Column(BigInteger)


# 文章-标签关联表：无主键、无唯一约束，重复的 tag_id 会写入重复行
article_to_tag = Table(
    "article_to_tag",
    Base.metadata,
    Column("article_id", Integer, ForeignKey("article.id"), nullable=False, index=True),
    Column("tag_id", Integer, ForeignKey("tag.id"), nullable=False),
)
