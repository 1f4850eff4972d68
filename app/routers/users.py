from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.identity import Requester, get_requester
from app.schemas import UserCreate, UserDetail, UserResponse, UserUpdate
from app.services import account_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await account_service.get_users(db)

@router.get("/{user_id}", response_model=UserDetail)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await account_service.get_user(db, user_id)

@router.post("", status_code=201, response_model=UserResponse)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await account_service.register(db, data)

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    return await account_service.update_user(db, requester, user_id, data)

@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    requester: Requester = Depends(get_requester),
):
    await account_service.delete_user(db, requester, user_id)
    return Response(status_code=204)
