"""Tests for provisional slip numbering."""

import pytest

from service_desk_api.app.services.sequence_service import SlipSequencer


class CountingSource:
    def __init__(self, last):
        self.last = last
        self.calls = 0

    async def fetch_last_sequence(self):
        self.calls += 1
        return self.last


def test_next_is_last_plus_one():
    assert SlipSequencer.next(41) == 42


def test_new_sequencer_is_stale():
    sequencer = SlipSequencer()
    assert sequencer.is_stale
    assert sequencer.peek() is None
    assert sequencer.fetched_at is None


@pytest.mark.asyncio
async def test_provisional_fetches_once_until_marked_stale():
    source = CountingSource(7)
    sequencer = SlipSequencer()

    assert await sequencer.provisional(source) == 8
    assert await sequencer.provisional(source) == 8
    assert source.calls == 1
    assert not sequencer.is_stale
    assert sequencer.fetched_at is not None


@pytest.mark.asyncio
async def test_marking_stale_forces_a_refetch():
    source = CountingSource(7)
    sequencer = SlipSequencer()
    await sequencer.provisional(source)

    source.last = 8
    sequencer.mark_stale()
    assert sequencer.peek() == 8
    assert await sequencer.provisional(source) == 9
    assert source.calls == 2


@pytest.mark.asyncio
async def test_refresh_always_refetches():
    source = CountingSource(1)
    sequencer = SlipSequencer()
    await sequencer.refresh(source)
    source.last = 5
    assert await sequencer.refresh(source) == 6
    assert sequencer.last_known == 5
