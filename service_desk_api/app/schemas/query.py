"""
Pydantic models describing a listing query.

``QueryParams`` bundles the status filter, date range, free-text
search and sort configuration that ``QueryEngine.apply`` consumes.
The default sort shows the newest records first.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from service_desk_api.app.core.exceptions import QueryParameterError


ALL_STATUSES = "All"


class SortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"

    @classmethod
    def from_param(cls, value: str) -> "SortDirection":
        """Accept ``asc``/``desc`` as well as the full names."""
        normalized = (value or "").strip().lower()
        if normalized in {"asc", "ascending"}:
            return cls.ASCENDING
        if normalized in {"desc", "descending"}:
            return cls.DESCENDING
        raise QueryParameterError(f"Unknown sort direction: {value!r}")


class SortConfig(BaseModel):
    key: Optional[str] = "created_date"
    direction: SortDirection = SortDirection.DESCENDING

    def toggle(self, key: str) -> "SortConfig":
        """Sort configuration after the user selects ``key``.

        Selecting the current key while ascending flips to descending;
        anything else (a new key, or the current key while descending)
        sorts ascending.
        """
        if self.key == key and self.direction is SortDirection.ASCENDING:
            return SortConfig(key=key, direction=SortDirection.DESCENDING)
        return SortConfig(key=key, direction=SortDirection.ASCENDING)


class QueryParams(BaseModel):
    status_filter: Optional[str] = Field(None, description="A status value or 'All'")
    date_from: Optional[str] = Field(None, description="Inclusive lower bound, YYYY-MM-DD")
    date_to: Optional[str] = Field(None, description="Inclusive upper bound, YYYY-MM-DD")
    search_term: Optional[str] = None
    sort: SortConfig = Field(default_factory=SortConfig)
