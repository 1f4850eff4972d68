"""
Session/identity resolution.

An inbound credential resolves to exactly one of two results:
``ANONYMOUS`` or ``Identified(account_id)``.  Resolution never raises;
bad tokens are logged by the token service and degrade to anonymous so
that public operations still go through.  Access is denied only by the
authorization gate (``app.authorization``).
"""
import logging
from dataclasses import dataclass

from fastapi import Header

from app.security import TokenService, token_service

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class Anonymous:
    is_authenticated = False
    account_id = None


@dataclass(frozen=True)
class Identified:
    account_id: int
    is_authenticated = True


ANONYMOUS = Anonymous()

Requester = Anonymous | Identified


def _extract_token(credential: str | None) -> str | None:
    if not credential:
        return None
    credential = credential.strip()
    if credential.lower().startswith(_BEARER_PREFIX):
        credential = credential[len(_BEARER_PREFIX):].strip()
    return credential or None


def resolve_identity(credential: str | None, tokens: TokenService = token_service) -> Requester:
    """
    Turn a raw token (or an ``Authorization`` header value) into a
    requester.  Absent or invalid credentials yield ``ANONYMOUS``.
    """
    token = _extract_token(credential)
    if token is None:
        return ANONYMOUS
    account_id = tokens.verify(token)
    if account_id is None:
        logger.info("Unverifiable credential; continuing as anonymous")
        return ANONYMOUS
    return Identified(account_id)


async def get_requester(authorization: str | None = Header(None)) -> Requester:
    """FastAPI dependency resolving the requester from the Authorization header."""
    return resolve_identity(authorization)
