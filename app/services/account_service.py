"""
Account service — identity lifecycle for the User aggregate.

Covers registration, login, profile updates and the account-delete
saga.  Passwords are hashed with bcrypt before they reach the store and
the digest never leaves this module.

Login failures are deliberately undifferentiated: an unknown email and a
wrong password both raise ``InvalidCredentials``, and both pay for one
bcrypt comparison.

Deleting an account is a two-step saga:

1. ``delete_account`` — remove the account record, then commit.
2. ``delete_articles`` — remove every article it owned.

A failure in step 2 surfaces as ``PartialFailure``.  The session token
of the deleted account stays valid until it expires, so the owner can
retry the same delete; an absent account that still owns articles is
treated as an unfinished cascade and cleaned up.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.authorization import Action, Resource, ensure_allowed, require_identity
from app.errors import ConflictError, InvalidCredentials, NotFound, PartialFailure, StoreFailure
from app.identity import Requester
from app.models import Article, User
from app.schemas import LoginRequest, UserCreate, UserUpdate
from app.security import password_hasher, token_service
from app.services.serializers import article_summary_to_dict, user_to_dict
from app.stores import AccountStore, ArticleStore

logger = logging.getLogger(__name__)


def _profile(user_id: int) -> Resource:
    return Resource(owner_id=user_id)


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[dict]:
    """Return all accounts, newest first."""
    users = await AccountStore(db).find_many(order_by=User.created_at.desc())
    return [user_to_dict(u) for u in users]


async def get_user(db: AsyncSession, user_id: int) -> dict:
    """Return one account together with a summary of its articles."""
    user = await AccountStore(db).find_by_id(user_id)
    if user is None:
        raise NotFound("User", user_id)
    articles = await ArticleStore(db).find_filtered(owner_id=user_id)
    data = user_to_dict(user)
    data["articles"] = [article_summary_to_dict(a) for a in articles]
    return data


async def get_current_user(db: AsyncSession, requester: Requester) -> dict:
    ensure_allowed(requester, Action.WHOAMI)
    user = await AccountStore(db).find_by_id(requester.account_id)
    if user is None:
        raise NotFound("User", requester.account_id)
    return user_to_dict(user)


# ---------------------------------------------------------------------------
# Registration and login
# ---------------------------------------------------------------------------

async def _conflict_or(exc: IntegrityError, store: AccountStore, email=None, username=None, exclude_id=None):
    """Translate a uniqueness race into ``ConflictError`` naming the field."""
    await store.db.rollback()
    field = await store.find_conflicting_field(email=email, username=username, exclude_id=exclude_id)
    if field is None:
        raise StoreFailure() from exc
    raise ConflictError(field) from exc


async def register(db: AsyncSession, data: UserCreate) -> dict:
    store = AccountStore(db)
    field = await store.find_conflicting_field(email=data.email, username=data.username)
    if field is not None:
        raise ConflictError(field)

    try:
        user = await store.create(
            username=data.username,
            email=data.email,
            password_hash=password_hasher.hash(data.password),
            bio=data.bio,
            avatar=data.avatar,
        )
    except IntegrityError as exc:
        await _conflict_or(exc, store, email=data.email, username=data.username)
    logger.info("Registered account %s", user.id)
    return user_to_dict(user)


async def authenticate(db: AsyncSession, data: LoginRequest) -> dict:
    """Return ``{"token", "user"}`` for valid credentials."""
    user = await AccountStore(db).find_by_email(data.email)
    digest = user.password_hash if user is not None else None
    if not password_hasher.verify(data.password, digest) or user is None:
        raise InvalidCredentials()
    return {"token": token_service.issue(user.id), "user": user_to_dict(user)}


def logout(requester: Requester) -> dict:
    # Tokens are not stored server-side; the client discards its copy.
    ensure_allowed(requester, Action.LOGOUT)
    return {"success": True}


# ---------------------------------------------------------------------------
# Profile mutations
# ---------------------------------------------------------------------------

async def update_user(db: AsyncSession, requester: Requester, user_id: int, data: UserUpdate) -> dict:
    require_identity(requester)
    store = AccountStore(db)
    user = await store.find_by_id(user_id)
    if user is None:
        raise NotFound("User", user_id)
    ensure_allowed(requester, Action.UPDATE_USER, _profile(user.id))

    patch = data.model_dump(exclude_unset=True)
    for field in ("username", "email", "password"):
        if patch.get(field, "") is None:
            del patch[field]

    email = patch.get("email") if patch.get("email") != user.email else None
    username = patch.get("username") if patch.get("username") != user.username else None
    field = await store.find_conflicting_field(email=email, username=username, exclude_id=user.id)
    if field is not None:
        raise ConflictError(field)

    password = patch.pop("password", None)
    if password is not None:
        patch["password_hash"] = password_hasher.hash(password)

    try:
        user = await store.update_by_id(user_id, patch)
    except IntegrityError as exc:
        await _conflict_or(exc, store, email=email, username=username, exclude_id=user_id)
    return user_to_dict(user)


async def delete_user(db: AsyncSession, requester: Requester, user_id: int) -> bool:
    require_identity(requester)
    accounts = AccountStore(db)
    articles = ArticleStore(db)

    user = await accounts.find_by_id(user_id)
    if user is None:
        # A previous delete may have removed the record but not the articles.
        resumable = requester.account_id == user_id and await articles.count(Article.user_id == user_id) > 0
        if not resumable:
            raise NotFound("User", user_id)
        logger.info("Resuming article cascade for deleted account %s", user_id)
    else:
        ensure_allowed(requester, Action.DELETE_USER, _profile(user.id))
        try:
            await accounts.delete_by_id(user_id)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Account %s: delete failed: %s", user_id, exc)
            raise StoreFailure() from exc

    try:
        removed = await articles.delete_by_owner(user_id)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Account %s deleted but article cascade failed: %s", user_id, exc)
        raise PartialFailure("delete_articles", {"owner_id": user_id}) from exc
    logger.info("Account %s deleted with %d article(s)", user_id, removed)
    return True
