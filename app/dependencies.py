from fastapi import Query

from app.config import settings


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates pagination /
    sorting query parameters for article listings.

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    page_size:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``.
    sort_by:
        Column name to sort by.  The service layer maps it onto a real
        column and falls back to ``created_at`` for anything else.
    sort_order:
        ``"asc"`` or ``"desc"``.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
        sort_by: str = Query("created_at", description="created_at, updated_at or title."),
        sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_order = sort_order


class ArticleFilters:
    """Optional article list filters: owner and tag (reverse lookup)."""

    def __init__(
        self,
        author_id: int | None = Query(None, description="Only articles owned by this account."),
        tag_id: int | None = Query(None, description="Only articles holding this tag."),
    ) -> None:
        self.author_id = author_id
        self.tag_id = tag_id
