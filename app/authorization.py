"""
Authorization engine.

Ownership is the only authorization primitive.  Each action is mapped
to a requirement in ``RULES``; ``authorize`` evaluates that requirement
for a requester and (optionally) the resource the action targets.

Rules, first match wins:

1. ``PUBLIC_READ``  -> allow.
2. anonymous requester on anything else -> deny ``AuthenticationRequired``.
3. ``OWNERSHIP``    -> allow iff the requester owns the resource, else
   deny ``Forbidden``.  No resource means no owner to match: deny.
   ``require_identity`` is the identity-only gate callers run before
   loading the target.
4. ``IDENTITY``     -> allow.
"""
import enum
from dataclasses import dataclass

from app.errors import AuthenticationRequired, DomainError, Forbidden
from app.identity import Requester


class Requirement(enum.Enum):
    PUBLIC_READ = "public-read"
    IDENTITY = "requires-identity"
    OWNERSHIP = "requires-ownership"


class Action(str, enum.Enum):
    # Accounts
    LIST_USERS = "users:list"
    GET_USER = "users:get"
    WHOAMI = "auth:me"
    LOGOUT = "auth:logout"
    UPDATE_USER = "users:update"
    DELETE_USER = "users:delete"
    # Articles
    LIST_ARTICLES = "articles:list"
    GET_ARTICLE = "articles:get"
    CREATE_ARTICLE = "articles:create"
    UPDATE_ARTICLE = "articles:update"
    DELETE_ARTICLE = "articles:delete"
    ADD_ARTICLE_TAGS = "articles:tags:add"
    REMOVE_ARTICLE_TAGS = "articles:tags:remove"
    # Tags
    LIST_TAGS = "tags:list"
    GET_TAG = "tags:get"
    CREATE_TAG = "tags:create"
    UPDATE_TAG = "tags:update"
    DELETE_TAG = "tags:delete"


RULES: dict[Action, Requirement] = {
    Action.LIST_USERS: Requirement.PUBLIC_READ,
    Action.GET_USER: Requirement.PUBLIC_READ,
    Action.LIST_ARTICLES: Requirement.PUBLIC_READ,
    Action.GET_ARTICLE: Requirement.PUBLIC_READ,
    Action.LIST_TAGS: Requirement.PUBLIC_READ,
    Action.GET_TAG: Requirement.PUBLIC_READ,
    Action.WHOAMI: Requirement.IDENTITY,
    Action.LOGOUT: Requirement.IDENTITY,
    Action.CREATE_ARTICLE: Requirement.IDENTITY,
    # Tags are a shared taxonomy: any identified account may edit them.
    Action.CREATE_TAG: Requirement.IDENTITY,
    Action.UPDATE_TAG: Requirement.IDENTITY,
    Action.DELETE_TAG: Requirement.IDENTITY,
    Action.UPDATE_USER: Requirement.OWNERSHIP,
    Action.DELETE_USER: Requirement.OWNERSHIP,
    Action.UPDATE_ARTICLE: Requirement.OWNERSHIP,
    Action.DELETE_ARTICLE: Requirement.OWNERSHIP,
    Action.ADD_ARTICLE_TAGS: Requirement.OWNERSHIP,
    Action.REMOVE_ARTICLE_TAGS: Requirement.OWNERSHIP,
}


@dataclass(frozen=True)
class Resource:
    owner_id: int


@dataclass(frozen=True)
class Allow:
    allowed = True


@dataclass(frozen=True)
class Deny:
    reason: type[DomainError]
    allowed = False


ALLOW = Allow()


def authorize(requester: Requester, action: Action, resource: Resource | None = None) -> Allow | Deny:
    requirement = RULES[action]

    if requirement is Requirement.PUBLIC_READ:
        return ALLOW

    if not requester.is_authenticated:
        return Deny(AuthenticationRequired)

    if requirement is Requirement.OWNERSHIP:
        if resource is None or requester.account_id != resource.owner_id:
            return Deny(Forbidden)

    return ALLOW


def ensure_allowed(requester: Requester, action: Action, resource: Resource | None = None) -> None:
    """Raise the error named by a ``Deny`` decision; return silently on ``Allow``."""
    decision = authorize(requester, action, resource)
    if not decision.allowed:
        raise decision.reason()


def require_identity(requester: Requester) -> None:
    """Raise ``AuthenticationRequired`` for an anonymous requester."""
    if not requester.is_authenticated:
        raise AuthenticationRequired()
