"""Shared helpers for building accounts, tags and articles in tests."""
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Tag, User
from app.security import password_hasher


async def register(client: AsyncClient, username: str, password: str = "secret123") -> dict:
    """Register an account and log it in; return the account plus auth headers."""
    email = f"{username}@example.com"
    resp = await client.post("/api/v1/users", json={
        "username": username,
        "email": email,
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    login = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    account = resp.json()
    account["headers"] = {"Authorization": f"Bearer {login.json()['token']}"}
    return account


async def make_tag(client: AsyncClient, headers: dict, name: str) -> int:
    resp = await client.post("/api/v1/tags", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


async def seed_user(db: AsyncSession, username: str = "svcuser") -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=password_hasher.hash("secret123"),
    )
    db.add(user)
    await db.flush()
    return user


async def seed_tags(db: AsyncSession, *names: str) -> list[Tag]:
    tags = [Tag(name=n) for n in names]
    db.add_all(tags)
    await db.flush()
    return tags
