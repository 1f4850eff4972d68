"""
Unit tests for the authorization rule table and the identity resolver.
No database involved.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.authorization import ALLOW, RULES, Action, Deny, Requirement, Resource, authorize, ensure_allowed, require_identity
from app.errors import AuthenticationRequired, Forbidden
from app.identity import ANONYMOUS, Identified, resolve_identity
from app.security import TokenService

OWNER = Identified(1)
STRANGER = Identified(2)
ARTICLE = Resource(owner_id=1)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

def test_every_action_has_a_rule():
    assert set(RULES) == set(Action)


@pytest.mark.parametrize("action", [a for a, r in RULES.items() if r is Requirement.PUBLIC_READ])
def test_public_reads_allow_anonymous(action):
    assert authorize(ANONYMOUS, action) == ALLOW


@pytest.mark.parametrize("action", [a for a, r in RULES.items() if r is not Requirement.PUBLIC_READ])
def test_everything_else_requires_identity(action):
    assert authorize(ANONYMOUS, action, ARTICLE) == Deny(AuthenticationRequired)


def test_ownership_allows_owner_only():
    assert authorize(OWNER, Action.DELETE_ARTICLE, ARTICLE) == ALLOW
    assert authorize(STRANGER, Action.DELETE_ARTICLE, ARTICLE) == Deny(Forbidden)
    assert authorize(STRANGER, Action.UPDATE_USER, Resource(owner_id=1)) == Deny(Forbidden)


@pytest.mark.parametrize("action", [a for a, r in RULES.items() if r is Requirement.OWNERSHIP])
def test_ownership_without_resource_is_denied(action):
    assert authorize(OWNER, action) == Deny(Forbidden)
    with pytest.raises(Forbidden):
        ensure_allowed(OWNER, action)


def test_require_identity_rejects_anonymous_only():
    with pytest.raises(AuthenticationRequired):
        require_identity(ANONYMOUS)
    require_identity(STRANGER)


def test_tags_are_open_to_any_identity():
    for action in (Action.CREATE_TAG, Action.UPDATE_TAG, Action.DELETE_TAG):
        assert authorize(STRANGER, action) == ALLOW


def test_ensure_allowed_raises_matching_error():
    with pytest.raises(AuthenticationRequired):
        ensure_allowed(ANONYMOUS, Action.CREATE_ARTICLE)
    with pytest.raises(Forbidden):
        ensure_allowed(STRANGER, Action.ADD_ARTICLE_TAGS, ARTICLE)
    ensure_allowed(OWNER, Action.ADD_ARTICLE_TAGS, ARTICLE)


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------

TOKENS = TokenService("test-secret", ttl_seconds=60)


def test_valid_token_resolves_to_account():
    token = TOKENS.issue(42)
    assert resolve_identity(token, TOKENS) == Identified(42)
    assert resolve_identity(f"Bearer {token}", TOKENS) == Identified(42)


@pytest.mark.parametrize("credential", [None, "", "Bearer ", "garbage", "Bearer a.b.c"])
def test_missing_or_malformed_token_is_anonymous(credential):
    assert resolve_identity(credential, TOKENS) is ANONYMOUS


def test_token_signed_with_other_secret_is_anonymous():
    forged = TokenService("other-secret").issue(42)
    assert resolve_identity(forged, TOKENS) is ANONYMOUS


def test_expired_token_is_anonymous():
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    expired = jwt.encode({"sub": "42", "exp": past}, "test-secret", algorithm="HS256")
    assert resolve_identity(expired, TOKENS) is ANONYMOUS


def test_token_without_subject_is_anonymous():
    future = datetime.now(timezone.utc) + timedelta(hours=1)
    token = jwt.encode({"exp": future}, "test-secret", algorithm="HS256")
    assert resolve_identity(token, TOKENS) is ANONYMOUS
