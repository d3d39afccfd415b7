"""
api/routes/v1/news.py -- News article endpoints.

Auth policy:
  GET    /api/v1/news            public -- published only
  GET    /api/v1/news/latest     public
  GET    /api/v1/news/{id}       public -- counts a view
  POST   /api/v1/news            {admin, editor}
  PUT    /api/v1/news/{id}       {admin, editor}
  DELETE /api/v1/news/{id}       {admin}
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.models import MessageResponse, NewsIn, NewsList, NewsOut, Pagination
from auth.dependencies import require_roles
from auth.models import ROLE_ADMIN, ROLE_EDITOR, Principal
from content.models import LocalizedText, NewsArticle
from content.store import ContentStore, page_count

router = APIRouter()

can_edit = require_roles(ROLE_ADMIN, ROLE_EDITOR)
can_delete = require_roles(ROLE_ADMIN)


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "News not found."})


@router.get("/news", response_model=NewsList)
def list_news(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: Optional[str] = Query(None, max_length=100),
) -> NewsList:
    store: ContentStore = request.app.state.content_store
    rows, total = store.list_news(page=page, limit=limit, category=category)
    return NewsList(
        data=[news_to_out(n) for n in rows],
        pagination=Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)),
    )


@router.get("/news/latest", response_model=list[NewsOut])
def latest_news(request: Request, limit: int = Query(5, ge=1, le=20)) -> list[NewsOut]:
    store: ContentStore = request.app.state.content_store
    return [news_to_out(n) for n in store.latest_news(limit)]


@router.get("/news/{news_id}", response_model=NewsOut)
def get_news(request: Request, news_id: str) -> NewsOut:
    """Return one article and count the view. The returned count excludes this view."""
    store: ContentStore = request.app.state.content_store
    article = store.get_news(news_id)
    if article is None:
        raise _not_found()
    store.increment_news_views(news_id)
    return news_to_out(article)


@router.post("/news", response_model=NewsOut, status_code=201)
def create_news(
    request: Request,
    body: NewsIn,
    principal: Principal = Depends(can_edit),
) -> NewsOut:
    store: ContentStore = request.app.state.content_store
    news_id = store.create_news(news_from_in(body))
    return news_to_out(store.get_news(news_id))


@router.put("/news/{news_id}", response_model=NewsOut)
def update_news(
    request: Request,
    news_id: str,
    body: NewsIn,
    principal: Principal = Depends(can_edit),
) -> NewsOut:
    store: ContentStore = request.app.state.content_store
    if not store.update_news(news_id, news_from_in(body)):
        raise _not_found()
    return news_to_out(store.get_news(news_id))


@router.delete("/news/{news_id}", response_model=MessageResponse)
def delete_news(
    request: Request,
    news_id: str,
    principal: Principal = Depends(can_delete),
) -> MessageResponse:
    store: ContentStore = request.app.state.content_store
    if not store.delete_news(news_id):
        raise _not_found()
    return MessageResponse(message="News deleted successfully.")


def news_from_in(body: NewsIn) -> NewsArticle:
    return NewsArticle(
        title=LocalizedText(zh=body.title.zh, en=body.title.en),
        content=LocalizedText(zh=body.content.zh, en=body.content.en),
        summary=LocalizedText(zh=body.summary.zh, en=body.summary.en),
        category=body.category,
        cover_image=body.cover_image,
        author=body.author or "Admin",
        status=body.status.value,
    )


def news_to_out(article: NewsArticle) -> NewsOut:
    return NewsOut(
        id=article.id,
        title={"zh": article.title.zh, "en": article.title.en},
        content={"zh": article.content.zh, "en": article.content.en},
        summary={"zh": article.summary.zh, "en": article.summary.en},
        category=article.category,
        cover_image=article.cover_image,
        author=article.author,
        views=article.views,
        status=article.status,
        published_at=article.published_at,
        created_at=article.created_at,
        updated_at=article.updated_at,
    )
