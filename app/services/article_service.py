"""
Article service — the article side of the graph integrity rules.

Design notes
------------
- Every mutation follows the same order: identity gate, existence
  check (``NotFound``), ownership check (``Forbidden``), tag reference
  validation (``UnresolvedReference``), and only then a write.  Nothing
  is written when any check fails.
- Tag references are validated with a single ``TagStore.find_by_ids``
  call against the de-duplicated id set; the error names every id that
  did not resolve.
- Add/remove on the tag set are single statements in ``ArticleStore``
  (insert-or-ignore / delete-where-in), so repeated or concurrent calls
  converge on the same set.
- The owner is always the requester; it is never read from input and
  never changed by an update.  The requester's account must still exist
  when an article is created.
- Any write to an article, tag-set changes included, moves ``updated_at``.
"""
import math
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.authorization import Action, Resource, ensure_allowed, require_identity
from app.errors import AuthenticationRequired, NotFound, UnresolvedReference
from app.identity import Requester
from app.models import Article
from app.schemas import ArticleCreate, ArticleUpdate, PaginatedResponse
from app.services.serializers import article_to_dict, tag_to_dict
from app.stores import AccountStore, ArticleStore, TagStore

# Columns that are safe to sort by; guards against arbitrary attribute access.
_SORTABLE_COLUMNS: frozenset[str] = frozenset({"created_at", "updated_at", "title"})


def _resolve_sort_column(sort_by: str):
    """Map *sort_by* onto an Article column, falling back to ``created_at``."""
    if sort_by in _SORTABLE_COLUMNS:
        return getattr(Article, sort_by)
    return Article.created_at


def owned(article: Article) -> Resource:
    return Resource(owner_id=article.user_id)


async def validate_tag_ids(db: AsyncSession, tag_ids: Iterable[int]) -> set[int]:
    """
    Return the de-duplicated id set when every id names an existing tag;
    raise ``UnresolvedReference`` listing the missing ids otherwise.
    """
    wanted = set(tag_ids)
    if not wanted:
        return wanted
    found = {t.id for t in await TagStore(db).find_by_ids(wanted)}
    missing = wanted - found
    if missing:
        raise UnresolvedReference(missing)
    return wanted


async def _load_for_owner(db: AsyncSession, requester: Requester, action: Action, article_id: int) -> Article:
    require_identity(requester)
    article = await ArticleStore(db).find_by_id(article_id)
    if article is None:
        raise NotFound("Article", article_id)
    ensure_allowed(requester, action, owned(article))
    return article


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------

async def get_articles(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    author_id: int | None = None,
    tag_id: int | None = None,
) -> PaginatedResponse:
    """Return one page of articles, optionally filtered by owner and/or tag."""
    store = ArticleStore(db)
    total = await store.count_filtered(owner_id=author_id, tag_id=tag_id)

    sort_col = _resolve_sort_column(sort_by)
    order_expr = sort_col.desc() if sort_order == "desc" else sort_col.asc()
    articles = await store.find_filtered(
        owner_id=author_id,
        tag_id=tag_id,
        order_by=order_expr,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return PaginatedResponse(
        items=[article_to_dict(a) for a in articles],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )


async def get_article(db: AsyncSession, article_id: int) -> dict:
    article = await ArticleStore(db).find_by_id(article_id)
    if article is None:
        raise NotFound("Article", article_id)
    return article_to_dict(article)


async def get_article_tags(db: AsyncSession, article_id: int) -> list[dict]:
    article = await ArticleStore(db).find_by_id(article_id)
    if article is None:
        raise NotFound("Article", article_id)
    return [tag_to_dict(t) for t in article.tags]


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, requester: Requester, data: ArticleCreate) -> dict:
    """Create an article owned by the requester; all-or-nothing on tag ids."""
    ensure_allowed(requester, Action.CREATE_ARTICLE)
    # A token outlives its account; a deleted owner cannot author anything.
    if await AccountStore(db).find_by_id(requester.account_id) is None:
        raise AuthenticationRequired()
    tag_ids = await validate_tag_ids(db, data.tag_ids)

    store = ArticleStore(db)
    article = await store.create(
        title=data.title,
        content=data.content,
        user_id=requester.account_id,
    )
    await store.add_tags(article.id, tag_ids)
    return article_to_dict(await store.find_by_id(article.id))


async def update_article(
    db: AsyncSession, requester: Requester, article_id: int, data: ArticleUpdate
) -> dict:
    """
    Merge the fields explicitly set in *data* into the article.

    When ``tag_ids`` is supplied the whole set is re-validated and then
    replaces the current one; otherwise the tag set is left alone.
    """
    await _load_for_owner(db, requester, Action.UPDATE_ARTICLE, article_id)

    patch = data.model_dump(exclude_unset=True)
    tag_ids = patch.pop("tag_ids", None)
    patch = {k: v for k, v in patch.items() if v is not None}

    store = ArticleStore(db)
    if tag_ids is not None:
        tag_ids = await validate_tag_ids(db, tag_ids)

    await store.update_fields(article_id, patch)
    if tag_ids is not None:
        await store.replace_tags(article_id, tag_ids)
    return article_to_dict(await store.find_by_id(article_id))


async def delete_article(db: AsyncSession, requester: Requester, article_id: int) -> bool:
    await _load_for_owner(db, requester, Action.DELETE_ARTICLE, article_id)
    return await ArticleStore(db).delete_by_id(article_id)


async def add_tags(db: AsyncSession, requester: Requester, article_id: int, tag_ids: list[int]) -> dict:
    """Union *tag_ids* into the article's tag set; already-present ids are no-ops."""
    await _load_for_owner(db, requester, Action.ADD_ARTICLE_TAGS, article_id)
    valid = await validate_tag_ids(db, tag_ids)

    store = ArticleStore(db)
    await store.add_tags(article_id, valid)
    await store.touch(article_id)
    return article_to_dict(await store.find_by_id(article_id))


async def remove_tags(db: AsyncSession, requester: Requester, article_id: int, tag_ids: list[int]) -> dict:
    """Remove *tag_ids* from the article's tag set; absent ids are no-ops."""
    await _load_for_owner(db, requester, Action.REMOVE_ARTICLE_TAGS, article_id)

    store = ArticleStore(db)
    await store.remove_tags(article_id, tag_ids)
    await store.touch(article_id)
    return article_to_dict(await store.find_by_id(article_id))
