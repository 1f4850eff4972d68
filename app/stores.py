"""
Entity stores — thin record-level access over an AsyncSession.

Each store offers the same CRUD surface (``find_by_id``, ``find_many``,
``create``, ``update_by_id``, ``delete_by_id``) plus the entity-specific
lookups the services need.  Stores flush but never commit; the caller
owns the transaction boundary.

Tag-set mutations on articles are single SQL statements against the
``article_tags`` association table, so an add-to-set or pull-from-set is
atomic at the database regardless of how many requests race on it.
"""
from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import Base
from app.models import Article, Tag, User, article_tags, utcnow

ModelT = TypeVar("ModelT", bound=Base)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SQLStore(Generic[ModelT]):
    model: type[ModelT]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _load_options(self) -> list:
        return []

    async def find_by_id(self, entity_id: int) -> ModelT | None:
        q = (
            select(self.model)
            .where(self.model.id == entity_id)
            .options(*self._load_options())
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(q)).scalar_one_or_none()

    async def find_many(self, *criteria, order_by=None, offset: int | None = None, limit: int | None = None) -> list[ModelT]:
        q = select(self.model).where(*criteria).options(*self._load_options())
        if order_by is not None:
            q = q.order_by(order_by)
        if offset:
            q = q.offset(offset)
        if limit is not None:
            q = q.limit(limit)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def count(self, *criteria) -> int:
        q = select(func.count()).select_from(self.model).where(*criteria)
        return (await self.db.execute(q)).scalar_one()

    async def create(self, **data: Any) -> ModelT:
        entity = self.model(**data)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def update_by_id(self, entity_id: int, patch: dict) -> ModelT | None:
        entity = await self.find_by_id(entity_id)
        if entity is None:
            return None
        for field, value in patch.items():
            setattr(entity, field, value)
        await self.db.flush()
        return entity

    async def delete_by_id(self, entity_id: int) -> bool:
        stmt = delete(self.model).where(self.model.id == entity_id)
        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Identity store
# ---------------------------------------------------------------------------

class AccountStore(SQLStore[User]):
    model = User

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_conflicting_field(
        self,
        email: str | None = None,
        username: str | None = None,
        exclude_id: int | None = None,
    ) -> str | None:
        """
        Return the name of the first unique field (``email`` then
        ``username``) already taken by another account, or None.
        """
        for field, value in (("email", email), ("username", username)):
            if value is None:
                continue
            q = select(User.id).where(getattr(User, field) == value)
            if exclude_id is not None:
                q = q.where(User.id != exclude_id)
            if (await self.db.execute(q.limit(1))).first() is not None:
                return field
        return None


# ---------------------------------------------------------------------------
# Tag store
# ---------------------------------------------------------------------------

class TagStore(SQLStore[Tag]):
    model = Tag

    async def find_by_ids(self, tag_ids: Iterable[int]) -> list[Tag]:
        ids = set(tag_ids)
        if not ids:
            return []
        return await self.find_many(Tag.id.in_(ids), order_by=Tag.name)

    async def find_by_name(self, name: str) -> Tag | None:
        result = await self.db.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Article store
# ---------------------------------------------------------------------------

class ArticleStore(SQLStore[Article]):
    model = Article

    def _load_options(self) -> list:
        return [selectinload(Article.author), selectinload(Article.tags)]

    def _filters(self, owner_id: int | None, tag_id: int | None) -> list:
        criteria = []
        if owner_id is not None:
            criteria.append(Article.user_id == owner_id)
        if tag_id is not None:
            criteria.append(
                Article.id.in_(
                    select(article_tags.c.article_id).where(article_tags.c.tag_id == tag_id)
                )
            )
        return criteria

    async def find_filtered(
        self,
        owner_id: int | None = None,
        tag_id: int | None = None,
        order_by=None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[Article]:
        return await self.find_many(
            *self._filters(owner_id, tag_id),
            order_by=order_by if order_by is not None else Article.created_at.desc(),
            offset=offset,
            limit=limit,
        )

    async def count_filtered(self, owner_id: int | None = None, tag_id: int | None = None) -> int:
        return await self.count(*self._filters(owner_id, tag_id))

    async def update_fields(self, article_id: int, patch: dict) -> None:
        """Apply *patch* and move ``updated_at``, even when *patch* is empty."""
        stmt = update(Article).where(Article.id == article_id).values(**patch, updated_at=utcnow())
        await self.db.execute(stmt.execution_options(synchronize_session=False))

    async def touch(self, article_id: int) -> None:
        await self.update_fields(article_id, {})

    async def add_tags(self, article_id: int, tag_ids: Iterable[int]) -> None:
        """Union *tag_ids* into the article's tag set (add-to-set)."""
        rows = [{"article_id": article_id, "tag_id": t} for t in sorted(set(tag_ids))]
        if not rows:
            return
        insert = _UPSERT_INSERTS[self.db.get_bind().dialect.name]
        stmt = insert(article_tags).values(rows).on_conflict_do_nothing()
        await self.db.execute(stmt)

    async def remove_tags(self, article_id: int, tag_ids: Iterable[int]) -> None:
        """Set-difference *tag_ids* out of the article's tag set (pull-from-set)."""
        ids = set(tag_ids)
        if not ids:
            return
        await self.db.execute(
            delete(article_tags).where(
                article_tags.c.article_id == article_id,
                article_tags.c.tag_id.in_(ids),
            )
        )

    async def replace_tags(self, article_id: int, tag_ids: Iterable[int]) -> None:
        await self.db.execute(delete(article_tags).where(article_tags.c.article_id == article_id))
        await self.add_tags(article_id, tag_ids)

    async def pull_tag_everywhere(self, tag_id: int) -> int:
        """Remove *tag_id* from every article holding it; return how many."""
        result = await self.db.execute(delete(article_tags).where(article_tags.c.tag_id == tag_id))
        return result.rowcount

    async def delete_by_id(self, entity_id: int) -> bool:
        await self.db.execute(delete(article_tags).where(article_tags.c.article_id == entity_id))
        return await super().delete_by_id(entity_id)

    async def delete_by_owner(self, owner_id: int) -> int:
        """Delete every article owned by *owner_id*; return how many."""
        owned = select(Article.id).where(Article.user_id == owner_id)
        await self.db.execute(delete(article_tags).where(article_tags.c.article_id.in_(owned)))
        stmt = delete(Article).where(Article.user_id == owner_id)
        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount
