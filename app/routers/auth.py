from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.identity import Requester, get_requester
from app.schemas import AuthResponse, LoginRequest, UserResponse
from app.services import account_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    return await account_service.authenticate(db, data)

@router.post("/logout")
async def logout(requester: Requester = Depends(get_requester)):
    return account_service.logout(requester)

@router.get("/me", response_model=UserResponse)
async def me(db: AsyncSession = Depends(get_db), requester: Requester = Depends(get_requester)):
    return await account_service.get_current_user(db, requester)
