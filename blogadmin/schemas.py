from typing import Any, List, Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str
    password: str
    nickname: str | None = None

class UserOut(BaseModel):
    id: int
    username: str
    nickname: str | None = None
    class Config:
        from_attributes = True

class LoginIn(BaseModel):
    username: str
    password: str

class LoginOut(BaseModel):
    username: str
    token: str

class ArticleUpdate(BaseModel):
    title: str
    description: str
    content: str
    cate_id: int

class ArticleCreate(ArticleUpdate):
    istop: bool = False

class ArticlePayload(ArticleUpdate):
    """前端 POST/PUT 提交的文章数据（含标签 id 列表）"""
    tags: List[int] = Field(default_factory=list)

class ArticleOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    cate_id: int
    istop: Optional[bool] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    class Config:
        from_attributes = True

class ArticleVo(ArticleOut):
    cate_name: Optional[str] = None

class ArticleEditVo(ArticleOut):
    # GROUP_CONCAT 聚合结果，如 "1,2"；无标签时为 None
    tags: Optional[str] = None

    @property
    def tag_ids(self) -> List[int]:
        if not self.tags:
            return []
        return [int(t) for t in self.tags.split(",")]

class RespData(BaseModel):
    code: int
    msg: str
    data: Any = None

class RespWithPagination(RespData):
    current_page: int
    page_size: int
    total: int
