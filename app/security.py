"""
Credential hashing and session tokens.

``PasswordHasher`` wraps bcrypt; ``TokenService`` issues and verifies
HS256 JWTs whose ``sub`` claim is the account id.  Both are thin so the
rest of the code only ever sees ``hash``/``verify`` and
``issue``/``verify``.
"""
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.config import settings

logger = logging.getLogger(__name__)


class PasswordHasher:
    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Compared against when the account does not exist so that a
        # failed login costs the same whether or not the email is known.
        self._dummy_digest = self.hash("not-a-real-password")

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode(), salt).decode()

    def verify(self, plaintext: str, digest: str | None) -> bool:
        """Constant-time check of *plaintext* against *digest*."""
        if digest is None:
            bcrypt.checkpw(plaintext.encode(), self._dummy_digest.encode())
            return False
        try:
            return bcrypt.checkpw(plaintext.encode(), digest.encode())
        except ValueError:
            logger.warning("Stored password digest is not a valid bcrypt hash")
            return False


class TokenService:
    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 7 * 24 * 3600) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(seconds=ttl_seconds)

    def issue(self, account_id: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {"sub": str(account_id), "iat": now, "exp": now + self.ttl}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int | None:
        """
        Return the account id bound to *token*, or None when the token is
        expired, badly signed or malformed.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Rejected expired session token")
            return None
        except jwt.InvalidTokenError as exc:
            logger.warning("Rejected invalid session token: %s", exc)
            return None

        try:
            return int(payload["sub"])
        except (TypeError, ValueError):
            logger.warning("Session token carries a non-numeric subject")
            return None


password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
token_service = TokenService(
    settings.SECRET_KEY,
    algorithm=settings.JWT_ALGORITHM,
    ttl_seconds=settings.TOKEN_TTL_SECONDS,
)
