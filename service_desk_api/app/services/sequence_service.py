"""
Slip number sequencing.

The next slip number is the last number the record store knows about
plus one.  Nothing is reserved on the store between reading that
number and submitting the new record, so the value is only ever
provisional: it is marked stale after every submission attempt,
successful or not, and re-fetched before it is used again.  Within
one process ``submission_lock`` keeps two intake requests from
sharing a number.  Two independent processes (two counters) can
still compute the same number; nothing here detects that.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol


logger = logging.getLogger(__name__)


class LastSequenceSource(Protocol):
    async def fetch_last_sequence(self) -> int: ...


class SlipSequencer:
    """Holds the provisional slip number for one session."""

    def __init__(self) -> None:
        self._last_known: Optional[int] = None
        self._fetched_at: Optional[datetime] = None
        self._stale = True
        self.submission_lock = asyncio.Lock()

    @staticmethod
    def next(last_known: int) -> int:
        return last_known + 1

    @property
    def is_stale(self) -> bool:
        """True until fetched, and again after every submission attempt."""
        return self._stale

    @property
    def last_known(self) -> Optional[int]:
        return self._last_known

    @property
    def fetched_at(self) -> Optional[datetime]:
        return self._fetched_at

    def peek(self) -> Optional[int]:
        """Provisional number as of the last fetch, without refreshing."""
        if self._last_known is None:
            return None
        return self.next(self._last_known)

    def mark_stale(self) -> None:
        self._stale = True

    async def refresh(self, store: LastSequenceSource) -> int:
        """Re-read the last slip number and return the new provisional one."""
        last = await store.fetch_last_sequence()
        self._last_known = last
        self._fetched_at = datetime.now(timezone.utc)
        self._stale = False
        logger.debug("Last slip number is %s; next provisional slip number %s", last, last + 1)
        return self.next(last)

    async def provisional(self, store: LastSequenceSource) -> int:
        """Provisional slip number, refreshed first if stale."""
        if self._stale or self._last_known is None:
            return await self.refresh(store)
        return self.next(self._last_known)
