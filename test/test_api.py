import logging

import pytest
from fastapi.testclient import TestClient

from blogadmin import crud, schemas
from blogadmin.config import Settings
from blogadmin.main import create_app

from conftest import seed


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        database = app.state.database
        seed(database)
        with database.session() as db:
            crud.create_user(db, schemas.UserCreate(username="admin", password="123456", nickname="boss"))
        yield client


@pytest.fixture
def auth_headers(client):
    resp = client.post("/api/admin/login", json={"username": "admin", "password": "123456"})
    token = resp.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


def post_article(client, headers, title="A", cate_id=1, tags=(1, 2)):
    resp = client.post(
        "/api/article",
        json={"title": title, "description": "d", "content": "c", "cate_id": cate_id, "tags": list(tags)},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


def test_login(client):
    resp = client.post("/api/admin/login", json={"username": "admin", "password": "123456"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["msg"] == "Login Successful."
    assert body["data"]["username"] == "admin"
    assert body["data"]["token"]


def test_login_with_wrong_password(client):
    resp = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})
    assert resp.status_code == 400
    assert resp.json()["code"] == 400


def test_write_endpoints_require_token(client):
    payload = {"title": "A", "description": "d", "content": "c", "cate_id": 1, "tags": []}
    assert client.post("/api/article", json=payload).status_code == 401
    assert client.put("/api/article/1", json=payload).status_code == 401
    assert client.delete("/api/article/1").status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.post("/api/article", json=payload, headers=bad).status_code == 401


def test_create_detail_and_edit_view(client, auth_headers):
    article_id = post_article(client, auth_headers)

    detail = client.get(f"/api/article/{article_id}").json()
    assert detail["code"] == 200
    assert detail["data"]["title"] == "A"

    edit = client.get(f"/api/article/edit/{article_id}").json()
    assert sorted(edit["data"]["tags"].split(",")) == ["1", "2"]


def test_missing_article_is_404(client, auth_headers):
    assert client.get("/api/article/404").status_code == 404
    assert client.get("/api/article/edit/404").status_code == 404
    resp = client.put("/api/article/404", json={"title": "x", "description": "d", "content": "c", "cate_id": 1, "tags": []}, headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == 404
    assert client.delete("/api/article/404", headers=auth_headers).status_code == 404


def test_update_and_delete(client, auth_headers):
    article_id = post_article(client, auth_headers)

    resp = client.put(
        f"/api/article/{article_id}",
        json={"title": "B", "description": "d", "content": "c", "cate_id": 2, "tags": [2, 3]},
        headers=auth_headers,
    )
    assert resp.json()["msg"] == "更新文章成功"
    edit = client.get(f"/api/article/edit/{article_id}").json()["data"]
    assert edit["title"] == "B"
    assert sorted(edit["tags"].split(",")) == ["2", "3"]

    assert client.delete(f"/api/article/{article_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/article/{article_id}").status_code == 404


def test_statement_failure_maps_to_500(client, auth_headers):
    resp = client.post(
        "/api/article",
        json={"title": "A", "description": "d", "content": "c", "cate_id": 42, "tags": [1]},
        headers=auth_headers,
    )
    assert resp.status_code == 500
    assert client.get("/api/articles").json()["total"] == 0


def test_blank_title_is_rejected(client, auth_headers):
    resp = client.post("/api/article", json={"title": "  ", "description": "d", "content": "c", "cate_id": 1, "tags": []}, headers=auth_headers)
    assert resp.status_code == 422
    assert resp.json()["msg"] == "title is required"


def test_list_with_pagination(client, auth_headers):
    for i in range(3):
        post_article(client, auth_headers, title=f"t{i}", cate_id=2)

    body = client.get("/api/articles", params={"page": 2, "pageSize": 2}).json()
    assert body["total"] == 3
    assert body["current_page"] == 2
    assert body["page_size"] == 2
    assert len(body["data"]) == 1
    assert body["data"][0]["cate_name"] == "Python"

    assert client.get("/api/articles", params={"page": 0}).status_code == 422


def test_hot_and_searches(client, auth_headers):
    post_article(client, auth_headers, title="foo", cate_id=3)
    post_article(client, auth_headers, title="foobar", cate_id=1)
    post_article(client, auth_headers, title="qux", cate_id=3)

    assert len(client.get("/api/article/hot").json()["data"]) == 3
    assert len(client.get("/api/article/search/foo").json()["data"]) == 2
    assert len(client.get("/api/article/search").json()["data"]) == 3
    found = client.get("/api/article/search", params={"title": "foo", "category": 3}).json()["data"]
    assert [a["title"] for a in found] == ["foo"]


def test_category_and_tag_articles(client, auth_headers):
    post_article(client, auth_headers, title="a", cate_id=1, tags=[4])
    post_article(client, auth_headers, title="b", cate_id=2, tags=[4, 5])

    assert [a["title"] for a in client.get("/api/category/2/artlist").json()["data"]] == ["b"]
    assert sorted(a["title"] for a in client.get("/api/tag/4/articles").json()["data"]) == ["a", "b"]


def test_update_requires_description_and_content(client, auth_headers):
    article_id = post_article(client, auth_headers)

    resp = client.put(f"/api/article/{article_id}", json={"title": "B", "cate_id": 1, "tags": []}, headers=auth_headers)
    assert resp.status_code == 422

    detail = client.get(f"/api/article/{article_id}").json()["data"]
    assert (detail["title"], detail["description"], detail["content"]) == ("A", "d", "c")


def test_list_users(client):
    body = client.get("/api/users").json()
    assert body["code"] == 200
    assert body["data"] == [{"id": 1, "username": "admin", "nickname": "boss"}]


def test_delete_user(client, auth_headers):
    with client.app.state.database.session() as db:
        editor = crud.create_user(db, schemas.UserCreate(username="editor", password="pw"))

    assert client.delete(f"/api/user/{editor.id}").status_code == 401
    resp = client.delete(f"/api/user/{editor.id}", headers=auth_headers)
    assert resp.status_code == 200
    assert [u["username"] for u in client.get("/api/users").json()["data"]] == ["admin"]

    resp = client.delete(f"/api/user/{editor.id}", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == 404


def test_default_secret_refused_outside_sqlite():
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        create_app(Settings(database_url="postgresql://user:pw@localhost/blog"))


def test_default_secret_warns_on_sqlite(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="blogadmin.main"):
        create_app(Settings(database_url=f"sqlite:///{tmp_path / 'blog.db'}"))

    assert "SECRET_KEY is not set" in caplog.text
