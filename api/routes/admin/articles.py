"""
api/routes/admin/articles.py -- Article CRUD routes.

Routes (mounted under /api/admin):
  GET    /articles                -- list all articles, newest first
  POST   /articles                -- create article (author must be an active persona)
  GET    /article/{article_id}    -- article detail
  PUT    /article/{article_id}    -- update the article; omitted optional fields are kept
  DELETE /article/{article_id}    -- permanent delete

InvalidPersonaError from the store becomes a 400 invalid_persona. The admin UI
only offers active personas, so this path is hit by API clients and stale forms.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import ArticleIn, ArticleOut, ErrorDetail
from auth.dependencies import get_current_admin
from auth.models import Admin
from content.store import ContentStore, InvalidPersonaError

logger = logging.getLogger("intelligencer.api.articles")

router = APIRouter(dependencies=[Depends(get_current_admin)])


def _not_found(article_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(
            code="article_not_found",
            message=f"Article {article_id} not found.",
        ).model_dump(),
    )


def _invalid_persona(exc: InvalidPersonaError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=ErrorDetail(
            code="invalid_persona",
            message="Articles must be attributed to an existing, active persona.",
            detail=str(exc),
        ).model_dump(),
    )


@router.get("/articles", response_model=list[ArticleOut])
def list_articles(request: Request) -> list[ArticleOut]:
    """Return every article (drafts included) with its author's name and role."""
    store: ContentStore = request.app.state.content
    return [ArticleOut.from_domain(a) for a in store.list_articles()]


@router.post("/articles", response_model=ArticleOut, status_code=201)
def create_article(
    request: Request,
    body: ArticleIn,
    admin: Admin = Depends(get_current_admin),
) -> ArticleOut:
    store: ContentStore = request.app.state.content
    try:
        article_id = store.create_article(body.to_domain())
    except InvalidPersonaError as exc:
        raise _invalid_persona(exc) from exc
    logger.info("Article %d created by %s", article_id, admin.email)
    return ArticleOut.from_domain(store.get_article(article_id))


@router.get("/article/{article_id}", response_model=ArticleOut)
def get_article(request: Request, article_id: int) -> ArticleOut:
    store: ContentStore = request.app.state.content
    article = store.get_article(article_id)
    if article is None:
        raise _not_found(article_id)
    return ArticleOut.from_domain(article)


@router.put("/article/{article_id}", response_model=ArticleOut)
def update_article(
    request: Request,
    article_id: int,
    body: ArticleIn,
    admin: Admin = Depends(get_current_admin),
) -> ArticleOut:
    store: ContentStore = request.app.state.content
    current = store.get_article(article_id)
    if current is None:
        raise _not_found(article_id)
    try:
        updated = store.update_article(article_id, body.to_domain(current))
    except InvalidPersonaError as exc:
        raise _invalid_persona(exc) from exc
    if not updated:
        raise _not_found(article_id)
    logger.info("Article %d updated by %s", article_id, admin.email)
    return ArticleOut.from_domain(store.get_article(article_id))


@router.delete("/article/{article_id}", status_code=204)
def delete_article(
    request: Request,
    article_id: int,
    admin: Admin = Depends(get_current_admin),
) -> Response:
    """Delete an article permanently. There is no undo."""
    store: ContentStore = request.app.state.content
    if not store.delete_article(article_id):
        raise _not_found(article_id)
    logger.info("Article %d deleted by %s", article_id, admin.email)
    return Response(status_code=204)
