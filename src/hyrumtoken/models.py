from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PageCursor(BaseModel):
    """
    Continuation state for offset/keyset pagination, meant to travel inside a token.

    Fields
    - offset: number of items already returned.
    - last_id: sort key of the last returned item for keyset pagination (None on the first page).
    - filters: the query filters the listing was started with, so later pages cannot
      be requested with a different filter set.

    Notes
    - Consumers only ever see the encrypted token, so these fields can change
      between releases without breaking anyone.
    """

    offset: int = Field(default=0, ge=0, description="Items already returned")
    last_id: Optional[str] = Field(default=None, description="Sort key of the last returned item")
    filters: Dict[str, Any] = Field(default_factory=dict, description="Filters of the original query")

    @classmethod
    def first(cls, **filters: Any) -> "PageCursor":
        """Cursor for the first page of a listing."""
        return cls(filters=filters)

    def next_page(self, returned: int, last_id: Optional[str] = None) -> "PageCursor":
        if returned < 0:
            raise ValueError("returned must be >= 0")
        return self.model_copy(
            update={"offset": self.offset + returned, "last_id": last_id if last_id is not None else self.last_id}
        )
