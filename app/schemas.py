from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


# Trimmed string that must keep at least one character.
NonBlankStr = Annotated[str, AfterValidator(_strip_required)]


# --- Tag ---

class TagCreate(BaseModel):
    name: NonBlankStr = Field(max_length=100)
    description: str | None = None


class TagUpdate(BaseModel):
    name: NonBlankStr | None = Field(None, max_length=100)
    description: str | None = None


class TagResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


# --- User (account) ---

class UserCreate(BaseModel):
    username: str = Field(min_length=2, max_length=50)
    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=6, max_length=128)
    bio: str | None = None
    avatar: str | None = None


class UserUpdate(BaseModel):
    username: str | None = Field(None, min_length=2, max_length=50)
    email: str | None = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str | None = Field(None, min_length=6, max_length=128)
    bio: str | None = None
    avatar: str | None = None


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    bio: str | None = None
    avatar: str | None = None
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserResponse):
    articles: list["ArticleSummary"] = []


# --- Auth ---

class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


# --- Article ---

class ArticleCreate(BaseModel):
    title: NonBlankStr = Field(max_length=300)
    content: str = Field(min_length=1)
    tag_ids: list[int] = []


class ArticleUpdate(BaseModel):
    title: NonBlankStr | None = Field(None, max_length=300)
    content: str | None = Field(None, min_length=1)
    tag_ids: list[int] | None = None


class TagIds(BaseModel):
    tag_ids: list[int] = Field(min_length=1)


class ArticleSummary(BaseModel):
    id: int
    title: str
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class ArticleResponse(ArticleSummary):
    content: str
    author: UserResponse | None = None
    tags: list[TagResponse] = []


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list
    total: int
    page: int
    page_size: int
    pages: int


# Required for forward-reference resolution (UserDetail.articles)
UserDetail.model_rebuild()
