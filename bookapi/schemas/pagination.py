"""
Page request value object.

Pages are 0-based. Sort is given as "field" or "field,asc|desc" where
field is a wire name (stockQuantity) or attribute name (stock_quantity).
"""

from pydantic import BaseModel, ConfigDict, Field

from bookapi.exceptions import InvalidRequestError

# wire name -> Book attribute
SORTABLE_FIELDS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "author": "author",
    "isbn": "isbn",
    "price": "price",
    "category": "category",
    "stockQuantity": "stock_quantity",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
SORTABLE_FIELDS.update({attr: attr for attr in list(SORTABLE_FIELDS.values())})

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PageRequest(BaseModel):
    """Immutable page + sort selection handed to the repository."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=0, ge=0)
    size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort_field: str = "title"
    descending: bool = False

    @classmethod
    def parse(cls, page: int = 0, size: int = DEFAULT_PAGE_SIZE, sort: str | None = None) -> "PageRequest":
        """
        Build a PageRequest from query-string values.

        Raises:
            InvalidRequestError: If the sort field or direction is unknown
        """
        if not sort:
            return cls(page=page, size=size)

        field, _, direction = (part.strip() for part in sort.partition(","))
        if field not in SORTABLE_FIELDS:
            raise InvalidRequestError(
                {"sort": f"Unknown sort field '{field}'. Allowed: {', '.join(sorted(SORTABLE_FIELDS))}"}
            )
        direction = direction.lower() or "asc"
        if direction not in ("asc", "desc"):
            raise InvalidRequestError({"sort": "Sort direction must be 'asc' or 'desc'"})

        return cls(
            page=page,
            size=size,
            sort_field=SORTABLE_FIELDS[field],
            descending=direction == "desc",
        )

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def sort(self) -> str:
        return f"{self.sort_field},{'desc' if self.descending else 'asc'}"

    @property
    def cache_key(self) -> str:
        """Stable key fragment: page-size-sort."""
        return f"{self.page}-{self.size}-{self.sort}"

    def total_pages(self, total: int) -> int:
        return (total + self.size - 1) // self.size
