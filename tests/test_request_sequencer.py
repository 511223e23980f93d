"""Tests for the request sequencer."""

import asyncio

import pytest

from station_navigation.application import RequestSequencer


def test_tickets_increase() -> None:
    """Given a sequencer, when issuing tickets, then each is larger than the last."""
    sequencer = RequestSequencer()

    tickets = [sequencer.issue() for _ in range(3)]

    assert tickets == [1, 2, 3]
    assert sequencer.latest_issued == 3


def test_responses_apply_in_issuance_order() -> None:
    """Given two tickets, when the newer is accepted first, then the older is rejected."""
    sequencer = RequestSequencer()
    first = sequencer.issue()
    second = sequencer.issue()

    assert sequencer.accept(second) is True
    assert sequencer.accept(first) is False


def test_overtaken_response_is_stale_before_the_newer_answers() -> None:
    """Given a newer request is in flight, when the older one answers first, then it is rejected."""
    sequencer = RequestSequencer()
    older = sequencer.issue()
    newer = sequencer.issue()

    assert sequencer.accept(older) is False
    assert sequencer.accept(newer) is True


def test_ticket_is_accepted_once() -> None:
    """Given an accepted ticket, when accepting it again, then it is rejected."""
    sequencer = RequestSequencer()
    ticket = sequencer.issue()

    assert sequencer.accept(ticket) is True
    assert sequencer.accept(ticket) is False


def test_invalidate_rejects_earlier_tickets() -> None:
    """Given tickets issued before an invalidation, when accepting them, then they are rejected."""
    sequencer = RequestSequencer()
    stale = sequencer.issue()
    sequencer.invalidate()
    fresh = sequencer.issue()

    assert sequencer.accept(stale) is False
    assert sequencer.accept(fresh) is True


@pytest.mark.asyncio
async def test_invalidate_cancels_tracked_tasks() -> None:
    """Given tracked in-flight tasks, when invalidating, then they are cancelled and no longer pending."""
    sequencer = RequestSequencer()
    tasks = []
    for _ in range(2):
        sequencer.issue()
        task = asyncio.create_task(asyncio.sleep(10))
        sequencer.track(task)
        tasks.append(task)

    assert sequencer.pending == 2

    cancelled = sequencer.invalidate()
    await asyncio.gather(*tasks, return_exceptions=True)

    assert cancelled == 2
    assert all(task.cancelled() for task in tasks)
    assert sequencer.pending == 0


@pytest.mark.asyncio
async def test_finished_tasks_are_untracked() -> None:
    """Given a tracked task, when it finishes, then it no longer counts as pending."""
    sequencer = RequestSequencer()
    task = asyncio.create_task(asyncio.sleep(0))
    sequencer.track(task)

    await task
    await asyncio.sleep(0)

    assert sequencer.pending == 0
    assert sequencer.cancel_all() == 0


@pytest.mark.asyncio
async def test_cancel_all_spares_the_running_task() -> None:
    """Given the current task is tracked, when it cancels all requests, then it keeps running."""
    sequencer = RequestSequencer()
    other = asyncio.create_task(asyncio.sleep(10))
    sequencer.track(other)

    async def cancel_from_inside() -> int:
        return sequencer.cancel_all()

    current = asyncio.create_task(cancel_from_inside())
    sequencer.track(current)

    assert await current == 1
    assert not current.cancelled()
    await asyncio.gather(other, return_exceptions=True)
    assert other.cancelled()
