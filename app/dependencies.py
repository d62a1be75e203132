from fastapi import Query

from app.config import settings


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates pagination
    query parameters.

    Usage in a router::

        @router.get("/posts")
        async def list_posts(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    page_size:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    offset:
        Computed SQL OFFSET derived from *page* and *page_size*.
    """

    def __init__(
        self,
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        """SQL OFFSET value computed from the current page and page size."""
        return (self.page - 1) * self.page_size


class PostFilterParams:
    """
    Optional narrowing of the post list.  Only the first filter supplied,
    in the order group, category, tags, type, is applied.
    """

    def __init__(
        self,
        group_id: int | None = Query(None, description="Only posts in this category group."),
        category_id: int | None = Query(None, description="Only posts in this category."),
        tag_ids: list[int] | None = Query(None, description="Posts carrying any of these tags."),
        type: str | None = Query(None, description="Post type: 'dev' or 'life'."),
    ) -> None:
        self.group_id = group_id
        self.category_id = category_id
        self.tag_ids = tag_ids or None
        self.type = type or None
