"""
Tag service — shared taxonomy CRUD.

Tags have no owner: any identified account may create, rename or delete
one.  Names are unique.  Deleting a tag is a two-step saga so that no
article is ever left holding a reference to a tag that no longer exists:

1. ``detach_tag`` — pull the tag id from every article, then commit.
2. ``delete_tag`` — delete the tag record.

If step 1 fails nothing has changed and the tag survives.  If step 2
fails the references are already gone; the caller gets
``PartialFailure`` and simply retries the delete.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.authorization import Action, ensure_allowed
from app.errors import ConflictError, NotFound, PartialFailure, StoreFailure
from app.identity import Requester
from app.models import Tag
from app.schemas import TagCreate, TagUpdate
from app.services.serializers import article_summary_to_dict, tag_to_dict
from app.stores import ArticleStore, TagStore

logger = logging.getLogger(__name__)


async def get_tags(db: AsyncSession) -> list[dict]:
    tags = await TagStore(db).find_many(order_by=Tag.name.asc())
    return [tag_to_dict(t) for t in tags]


async def get_tag(db: AsyncSession, tag_id: int) -> dict:
    tag = await TagStore(db).find_by_id(tag_id)
    if tag is None:
        raise NotFound("Tag", tag_id)
    return tag_to_dict(tag)


async def get_tag_articles(db: AsyncSession, tag_id: int) -> list[dict]:
    """Articles referencing *tag_id*, computed by reverse lookup."""
    if await TagStore(db).find_by_id(tag_id) is None:
        raise NotFound("Tag", tag_id)
    articles = await ArticleStore(db).find_filtered(tag_id=tag_id)
    return [article_summary_to_dict(a) for a in articles]


async def _ensure_name_free(store: TagStore, name: str, tag_id: int | None = None) -> None:
    existing = await store.find_by_name(name)
    if existing is not None and existing.id != tag_id:
        raise ConflictError("name")


async def create_tag(db: AsyncSession, requester: Requester, data: TagCreate) -> dict:
    ensure_allowed(requester, Action.CREATE_TAG)
    store = TagStore(db)
    await _ensure_name_free(store, data.name)
    try:
        tag = await store.create(name=data.name, description=data.description)
    except IntegrityError as exc:
        # Lost a race with a concurrent create of the same name.
        raise ConflictError("name") from exc
    return tag_to_dict(tag)


async def update_tag(db: AsyncSession, requester: Requester, tag_id: int, data: TagUpdate) -> dict:
    ensure_allowed(requester, Action.UPDATE_TAG)
    store = TagStore(db)
    if await store.find_by_id(tag_id) is None:
        raise NotFound("Tag", tag_id)

    patch = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k != "name" or v is not None}
    if "name" in patch:
        await _ensure_name_free(store, patch["name"], tag_id)
    try:
        tag = await store.update_by_id(tag_id, patch)
    except IntegrityError as exc:
        raise ConflictError("name") from exc
    return tag_to_dict(tag)


async def delete_tag(db: AsyncSession, requester: Requester, tag_id: int) -> bool:
    ensure_allowed(requester, Action.DELETE_TAG)
    if await TagStore(db).find_by_id(tag_id) is None:
        raise NotFound("Tag", tag_id)

    try:
        detached = await ArticleStore(db).pull_tag_everywhere(tag_id)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Tag %s: detaching from articles failed: %s", tag_id, exc)
        raise StoreFailure() from exc
    logger.info("Tag %s detached from %d article(s)", tag_id, detached)

    try:
        await TagStore(db).delete_by_id(tag_id)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Tag %s: references removed but record delete failed: %s", tag_id, exc)
        raise PartialFailure("delete_tag", {"tag_id": tag_id}) from exc
    return True
