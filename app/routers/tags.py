from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.identity import Requester, get_requester
from app.schemas import ArticleSummary, TagCreate, TagResponse, TagUpdate
from app.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])

@router.get("", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tags(db)

@router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag(db, tag_id)

@router.get("/{tag_id}/articles", response_model=list[ArticleSummary])
async def get_tag_articles(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag_articles(db, tag_id)

@router.post("", status_code=201, response_model=TagResponse)
async def create_tag(
    data: TagCreate,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    return await tag_service.create_tag(db, requester, data)

@router.put("/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: int,
    data: TagUpdate,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    return await tag_service.update_tag(db, requester, tag_id, data)

@router.delete("/{tag_id}", status_code=204)
async def delete_tag(
    tag_id: int,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    await tag_service.delete_tag(db, requester, tag_id)
    return Response(status_code=204)
