"""
In-memory query engine for the service record table.

Filtering, searching and sorting run in Python over the snapshot
fetched from the record store; the store itself has no query
capability.  The pipeline order is fixed: status filter, date range,
free-text search, then sort.  Data problems (empty cells, unparsable
numbers, missing dates) never raise; only malformed parameters do.
"""

from __future__ import annotations

import locale
import logging
from typing import Any, Dict, List, Optional, Sequence

from service_desk_api.app.core.exceptions import QueryParameterError
from service_desk_api.app.schemas.query import ALL_STATUSES, QueryParams, SortConfig, SortDirection
from service_desk_api.app.schemas.service_record import (
    DATE_PREFIX,
    ServiceRecord,
    ServiceStatus,
    as_text,
    leading_int,
)


logger = logging.getLogger(__name__)

NUMERIC_SORT_KEYS = {"sequence_no", "estimate_amount"}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _sort_key_aliases() -> Dict[str, str]:
    aliases: Dict[str, str] = {}
    for name, info in ServiceRecord.model_fields.items():
        aliases[name] = name
        aliases[_camel(name)] = name
        if info.alias:
            aliases[info.alias] = name
    return aliases


_SORT_KEYS = _sort_key_aliases()


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class QueryEngine:
    """Produce the filtered, ordered view of a record snapshot."""

    @classmethod
    def apply(cls, records: Sequence[ServiceRecord], params: QueryParams) -> List[ServiceRecord]:
        """Return a new list; ``records`` is left untouched."""
        view = list(records)
        view = cls.filter_status(view, params.status_filter)
        view = cls.filter_date_range(view, params.date_from, params.date_to)
        view = cls.search(view, params.search_term)
        return cls.sort(view, params.sort)

    @staticmethod
    def resolve_sort_key(key: str) -> str:
        """Map a snake_case, camelCase or wire name to the attribute name."""
        try:
            return _SORT_KEYS[key]
        except KeyError:
            raise QueryParameterError(f"Unknown sort key: {key!r}") from None

    @staticmethod
    def filter_status(records: List[ServiceRecord], status_filter: Optional[str]) -> List[ServiceRecord]:
        if status_filter is None or status_filter.strip() in ("", ALL_STATUSES):
            return records
        wanted = ServiceStatus.parse(status_filter)
        if wanted is None:
            raise QueryParameterError(f"Unknown status filter: {status_filter!r}")
        return [record for record in records if record.status is wanted]

    @staticmethod
    def filter_date_range(
        records: List[ServiceRecord],
        date_from: Optional[str],
        date_to: Optional[str],
    ) -> List[ServiceRecord]:
        start = _date_bound(date_from, "date_from")
        end = _date_bound(date_to, "date_to")
        if not start and not end:
            return records
        kept = []
        for record in records:
            # created_date is already normalised, so plain string
            # comparison orders calendar dates correctly.
            created = record.created_date
            if not created:
                continue
            if start and created < start:
                continue
            if end and created > end:
                continue
            kept.append(record)
        return kept

    @staticmethod
    def search(records: List[ServiceRecord], term: Optional[str]) -> List[ServiceRecord]:
        if not term:
            return records
        needle = term.casefold()
        return [
            record
            for record in records
            if any(needle in value.casefold() for value in record.searchable_values())
        ]

    @classmethod
    def sort(cls, records: List[ServiceRecord], config: SortConfig) -> List[ServiceRecord]:
        if not config.key:
            return records
        key = cls.resolve_sort_key(config.key)
        numeric = key in NUMERIC_SORT_KEYS

        present: List[ServiceRecord] = []
        missing: List[ServiceRecord] = []
        for record in records:
            (missing if _is_absent(getattr(record, key)) else present).append(record)

        # list.sort is stable in both directions, and records without a
        # value stay at the end whichever way the view is ordered.
        present.sort(
            key=lambda record: _sort_value(getattr(record, key), numeric),
            reverse=config.direction is SortDirection.DESCENDING,
        )
        return present + missing


def _date_bound(value: Optional[str], name: str) -> str:
    if value is None or not value.strip():
        return ""
    match = DATE_PREFIX.match(value.strip())
    if not match:
        raise QueryParameterError(f"{name} must be a YYYY-MM-DD date, got {value!r}")
    return match.group(0)


def _sort_value(value: Any, numeric: bool):
    if numeric:
        parsed = leading_int(value)
        return parsed if parsed is not None else 0
    return locale.strxfrm(as_text(value).casefold())


def configure_collation(name: str = "") -> str:
    """Set the locale used to order text columns and return the one in effect.

    ``""`` takes the collation from the environment (``LC_ALL``,
    ``LC_COLLATE``, ``LANG``).  An unavailable locale is logged and the
    current collation is kept.
    """
    try:
        locale.setlocale(locale.LC_COLLATE, name)
    except locale.Error as exc:
        logger.warning("Collation locale %r is not available (%s); keeping %s",
                       name, exc, locale.setlocale(locale.LC_COLLATE))
    return locale.setlocale(locale.LC_COLLATE)
