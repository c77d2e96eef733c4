"""
Comment endpoint tests: creation, listing order, and the NotFound /
Forbidden ordering on delete.
"""
import pytest
from httpx import AsyncClient


async def _token(client: AsyncClient, username: str) -> str:
    resp = await client.post("/api/users", json={"user": {
        "username": username,
        "email": f"{username}@example.com",
        "password": "secret123",
    }})
    return resp.json()["user"]["token"]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Token {token}"}


async def _article_slug(client: AsyncClient, token: str, title: str = "Commentable") -> str:
    resp = await client.post("/api/articles", headers=_auth(token), json={"article": {
        "title": title, "description": "d", "body": "b",
    }})
    return resp.json()["article"]["slug"]


async def _comment(client: AsyncClient, token: str, slug: str, body: str):
    return await client.post(
        f"/api/articles/{slug}/comments", headers=_auth(token), json={"comment": {"body": body}}
    )


@pytest.mark.asyncio
async def test_add_comment(async_client: AsyncClient):
    """A new comment comes back with its author profile and a trimmed body."""
    token = await _token(async_client, "commenter")
    slug = await _article_slug(async_client, token)

    resp = await _comment(async_client, token, slug, "  Thank you so much!  ")
    assert resp.status_code == 201
    comment = resp.json()["comment"]
    assert comment["body"] == "Thank you so much!"
    assert comment["author"]["username"] == "commenter"
    assert comment["author"]["following"] is False
    assert isinstance(comment["id"], int)
    assert "createdAt" in comment


@pytest.mark.asyncio
async def test_add_blank_comment_is_422(async_client: AsyncClient):
    token = await _token(async_client, "silent")
    slug = await _article_slug(async_client, token)
    resp = await _comment(async_client, token, slug, "   ")
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"body": ["can't be blank"]}}


@pytest.mark.asyncio
async def test_add_comment_to_missing_article_is_404(async_client: AsyncClient):
    token = await _token(async_client, "misdirected")
    resp = await _comment(async_client, token, "no-such-article", "hello")
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"article": ["not found"]}}


@pytest.mark.asyncio
async def test_add_comment_requires_auth(async_client: AsyncClient):
    token = await _token(async_client, "host")
    slug = await _article_slug(async_client, token)
    resp = await async_client.post(f"/api/articles/{slug}/comments", json={"comment": {"body": "hi"}})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_comments_newest_first_with_following(async_client: AsyncClient):
    author = await _token(async_client, "thread_author")
    other = await _token(async_client, "thread_other")
    slug = await _article_slug(async_client, author)
    await _comment(async_client, author, slug, "first")
    await _comment(async_client, other, slug, "second")
    await async_client.post("/api/profiles/thread_other/follow", headers=_auth(author))

    resp = await async_client.get(f"/api/articles/{slug}/comments", headers=_auth(author))
    assert resp.status_code == 200
    comments = resp.json()["comments"]
    assert [c["body"] for c in comments] == ["second", "first"]
    assert comments[0]["author"]["following"] is True
    assert comments[1]["author"]["following"] is False

    anonymous = (await async_client.get(f"/api/articles/{slug}/comments")).json()["comments"]
    assert all(c["author"]["following"] is False for c in anonymous)


@pytest.mark.asyncio
async def test_list_comments_missing_article_is_404(async_client: AsyncClient):
    resp = await async_client.get("/api/articles/gone/comments")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_comment_authorization_order(async_client: AsyncClient):
    """Article NotFound, then comment NotFound, then Forbidden, then success."""
    author = await _token(async_client, "c_author")
    other = await _token(async_client, "c_other")
    slug = await _article_slug(async_client, author)
    comment_id = (await _comment(async_client, author, slug, "mine")).json()["comment"]["id"]

    resp = await async_client.delete(f"/api/articles/missing/comments/{comment_id}", headers=_auth(other))
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"article": ["not found"]}}

    resp = await async_client.delete(f"/api/articles/{slug}/comments/999999", headers=_auth(other))
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"comment": ["not found"]}}

    resp = await async_client.delete(f"/api/articles/{slug}/comments/{comment_id}", headers=_auth(other))
    assert resp.status_code == 403

    resp = await async_client.delete(f"/api/articles/{slug}/comments/{comment_id}", headers=_auth(author))
    assert resp.status_code == 204
    assert (await async_client.get(f"/api/articles/{slug}/comments")).json() == {"comments": []}


@pytest.mark.asyncio
async def test_delete_comment_through_other_article_is_404(async_client: AsyncClient):
    """A comment id is only addressable under the article it belongs to."""
    token = await _token(async_client, "two_articles")
    first = await _article_slug(async_client, token, "First")
    second = await _article_slug(async_client, token, "Second")
    comment_id = (await _comment(async_client, token, first, "on first")).json()["comment"]["id"]

    resp = await async_client.delete(f"/api/articles/{second}/comments/{comment_id}", headers=_auth(token))
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"comment": ["not found"]}}


@pytest.mark.asyncio
async def test_deleting_article_removes_its_comments(async_client: AsyncClient):
    token = await _token(async_client, "cascade")
    slug = await _article_slug(async_client, token)
    await _comment(async_client, token, slug, "doomed")

    resp = await async_client.delete(f"/api/articles/{slug}", headers=_auth(token))
    assert resp.status_code == 204
    resp = await async_client.get(f"/api/articles/{slug}/comments")
    assert resp.status_code == 404
