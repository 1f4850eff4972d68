from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import ArticleFilters, PaginationParams
from app.identity import Requester, get_requester
from app.schemas import ArticleCreate, ArticleResponse, ArticleUpdate, PaginatedResponse, TagIds, TagResponse
from app.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

@router.get("", response_model=PaginatedResponse)
async def list_articles(
    pagination: PaginationParams = Depends(),
    filters: ArticleFilters = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_articles(
        db,
        pagination.page,
        pagination.page_size,
        pagination.sort_by,
        pagination.sort_order,
        author_id=filters.author_id,
        tag_id=filters.tag_id,
    )

@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, article_id)

@router.get("/{article_id}/tags", response_model=list[TagResponse])
async def get_article_tags(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article_tags(db, article_id)

@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    return await article_service.create_article(db, requester, data)

@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    return await article_service.update_article(db, requester, article_id, data)

@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    await article_service.delete_article(db, requester, article_id)
    return Response(status_code=204)

@router.post("/{article_id}/tags", response_model=ArticleResponse)
async def add_tags(
    article_id: int,
    data: TagIds,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    return await article_service.add_tags(db, requester, article_id, data.tag_ids)

@router.delete("/{article_id}/tags", response_model=ArticleResponse)
async def remove_tags(
    article_id: int,
    tag_ids: list[int] = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    return await article_service.remove_tags(db, requester, article_id, tag_ids)
