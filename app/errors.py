"""
Domain error taxonomy.

Every failure the core reports to a caller is one of the ``DomainError``
subclasses below.  Each carries a stable machine-readable ``code``, the
HTTP status the router layer answers with, and an optional ``extra``
mapping that is merged into the JSON error body (e.g. the conflicting
field, the unresolved tag ids, the saga step that failed).
"""
from typing import Any


class DomainError(Exception):
    code: str = "DomainError"
    status_code: int = 400
    message: str = "Request failed"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.code, "detail": self.message}
        body.update(self.extra)
        return body


class NotFound(DomainError):
    code = "NotFound"
    status_code = 404
    message = "Resource not found"

    def __init__(self, entity: str, entity_id: int | None = None) -> None:
        super().__init__(f"{entity} not found", entity=entity.lower(), id=entity_id)


class ConflictError(DomainError):
    code = "ConflictError"
    status_code = 409

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} already exists", field=field)


class UnresolvedReference(DomainError):
    code = "UnresolvedReference"
    status_code = 422

    def __init__(self, missing_ids) -> None:
        self.missing_ids = sorted(missing_ids)
        super().__init__(
            "One or more tags not found", missing_tag_ids=self.missing_ids
        )


class AuthenticationRequired(DomainError):
    code = "AuthenticationRequired"
    status_code = 401
    message = "Authentication required"


class Forbidden(DomainError):
    code = "Forbidden"
    status_code = 403
    message = "Not allowed to modify a resource owned by another account"


class InvalidCredentials(DomainError):
    code = "InvalidCredentials"
    status_code = 401
    message = "Invalid credentials"


class PartialFailure(DomainError):
    """
    A multi-step operation committed its first step but not the rest.

    ``step`` names the step that failed; ``remaining`` describes what the
    caller has to retry.  Nothing is rolled back or retried automatically.
    """

    code = "PartialFailure"
    status_code = 500

    def __init__(self, step: str, remaining: dict | None = None) -> None:
        self.step = step
        self.remaining = remaining or {}
        super().__init__(
            f"Operation partially applied; step '{step}' failed and must be retried",
            failed_step=step,
            remaining=self.remaining,
        )


class StoreFailure(DomainError):
    code = "StoreFailure"
    status_code = 500
    message = "Internal storage failure"
