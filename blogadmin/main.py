import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import __version__, auth, crud, deps, schemas
from .config import Settings
from .errors import ConnectionFailure, NotFound, StatementFailure, ValidationFailure
from .store import ArticleStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def ok(data=None, msg: str = "Success") -> schemas.RespData:
    return schemas.RespData(code=200, msg=msg, data=data)


def fail(status_code: int, msg: str) -> JSONResponse:
    body = schemas.RespData(code=status_code, msg=msg, data=None)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def check_payload(payload: schemas.ArticlePayload) -> None:
    if not payload.title.strip():
        raise ValidationFailure("title is required")


# ---------- 用户 ----------

@router.post("/admin/login")
def login(payload: schemas.LoginIn, request: Request, db: Session = Depends(deps.get_db)):
    user = crud.authenticate(db, payload.username, payload.password)
    if not user:
        return fail(status.HTTP_400_BAD_REQUEST, "Username or password error.")
    token = auth.create_access_token(request.app.state.settings, user.username)
    return ok(schemas.LoginOut(username=user.username, token=token), msg="Login Successful.")


@router.get("/users")
def list_users(db: Session = Depends(deps.get_db)):
    users = [schemas.UserOut.model_validate(u) for u in crud.get_users(db)]
    return ok(users, msg="Get user list successful.")


@router.delete("/user/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(deps.get_db),
    _user: str = Depends(auth.require_token),
):
    if crud.delete_user(db, user_id) is None:
        raise NotFound(f"user {user_id} does not exist")
    return ok(msg="删除用户成功")


# ---------- 文章 ----------

@router.get("/articles")
def list_articles(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=0, alias="pageSize"),
    store: ArticleStore = Depends(deps.get_store),
):
    total = store.find_total()
    articles = store.find_page((page - 1) * page_size, page_size)
    return schemas.RespWithPagination(
        code=200, msg="Success", data=articles, current_page=page, page_size=page_size, total=total
    )


# 静态路径必须注册在 /article/{article_id} 之前
@router.get("/article/hot")
def hot(store: ArticleStore = Depends(deps.get_store)):
    return ok(store.hot_list())


@router.get("/article/search")
def admin_search(
    title: str = "",
    category: int = Query(0, ge=0),
    store: ArticleStore = Depends(deps.get_store),
):
    return ok(store.admin_search(title, category))


@router.get("/article/search/{keyword}")
def search(keyword: str, store: ArticleStore = Depends(deps.get_store)):
    return ok(store.search(keyword))


@router.get("/article/edit/{article_id}")
def editing_article_detail(article_id: int, store: ArticleStore = Depends(deps.get_store)):
    article = store.find_editing_by_id(article_id)
    if article is None:
        raise NotFound(f"article {article_id} does not exist")
    return ok(article)


@router.get("/article/{article_id}")
def detail(article_id: int, store: ArticleStore = Depends(deps.get_store)):
    article = store.find_by_id(article_id)
    if article is None:
        raise NotFound(f"article {article_id} does not exist")
    return ok(article)


@router.post("/article")
def create(
    payload: schemas.ArticlePayload,
    store: ArticleStore = Depends(deps.get_store),
    _user: str = Depends(auth.require_token),
):
    check_payload(payload)
    article = schemas.ArticleCreate(**payload.model_dump(exclude={"tags"}))
    new_id = store.create(article, payload.tags)
    return ok({"id": new_id}, msg="新增文章成功")


@router.put("/article/{article_id}")
def update(
    article_id: int,
    payload: schemas.ArticlePayload,
    store: ArticleStore = Depends(deps.get_store),
    _user: str = Depends(auth.require_token),
):
    check_payload(payload)
    fields = schemas.ArticleUpdate(**payload.model_dump(exclude={"tags"}))
    store.update(article_id, fields, payload.tags)
    return ok(msg="更新文章成功")


@router.delete("/article/{article_id}")
def delete(
    article_id: int,
    store: ArticleStore = Depends(deps.get_store),
    _user: str = Depends(auth.require_token),
):
    store.remove(article_id)
    return ok(msg="删除文章成功")


# ---------- 分类 / 标签下的文章 ----------

@router.get("/category/{cate_id}/artlist")
def category_articles(cate_id: int, store: ArticleStore = Depends(deps.get_store)):
    return ok(store.find_by_category(cate_id))


@router.get("/tag/{tag_id}/articles")
def tag_articles(tag_id: int, store: ArticleStore = Depends(deps.get_store)):
    return ok(store.find_by_tag(tag_id))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    if settings.uses_default_secret:
        # 只允许本地 SQLite 使用默认密钥，其他数据库必须配置 SECRET_KEY
        if not settings.database_url.startswith("sqlite"):
            raise RuntimeError("SECRET_KEY is not set; refusing to issue tokens with the default key")
        logger.warning("SECRET_KEY is not set, using the insecure default key")

    app = FastAPI(
        title="BlogAdmin",
        description="Blog administration backend",
        version=__version__,
    )
    database = deps.Database(settings)
    app.state.settings = settings
    app.state.database = database
    app.state.store = ArticleStore(database)

    @app.on_event("startup")
    def on_startup():
        # 启动时自动创建表（在 SQLite 初次运行时很有用）
        database.create_all()

    @app.on_event("shutdown")
    def on_shutdown():
        database.dispose()

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return fail(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(StatementFailure)
    async def statement_failure_handler(request: Request, exc: StatementFailure):
        logger.error("statement failed on %s %s: %s", request.method, request.url.path, exc)
        return fail(status.HTTP_500_INTERNAL_SERVER_ERROR, "database statement failed")

    @app.exception_handler(ConnectionFailure)
    async def connection_failure_handler(request: Request, exc: ConnectionFailure):
        logger.error("database unavailable: %s", exc)
        return fail(status.HTTP_503_SERVICE_UNAVAILABLE, "database unavailable")

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        content = {"code": 422, "msg": "validation failed", "data": jsonable_encoder(exc.errors())}
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure):
        return fail(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))

    app.include_router(router)
    return app
