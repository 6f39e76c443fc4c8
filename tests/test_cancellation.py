"""Test the cancellation token.

Run with: pytest tests/test_cancellation.py -v
"""

import asyncio

import pytest

from papergraph.core.cancellation import CancellationToken
from papergraph.exceptions import ExtractionCancelledError


def test_new_token_is_not_cancelled():
    token = CancellationToken()

    assert not token.is_cancelled
    assert token.reason is None
    token.raise_if_cancelled()


def test_cancel_keeps_the_first_reason():
    token = CancellationToken()
    token.cancel("first")
    token.cancel("second")

    assert token.is_cancelled
    assert token.reason == "first"
    with pytest.raises(ExtractionCancelledError, match="Extraction cancelled"):
        token.raise_if_cancelled()


def test_run_returns_the_result():
    async def answer():
        await asyncio.sleep(0)
        return 42

    async def scenario():
        return await CancellationToken().run(answer())

    assert asyncio.run(scenario()) == 42


def test_run_propagates_errors():
    async def broken():
        raise ValueError("bad")

    async def scenario():
        await CancellationToken().run(broken())

    with pytest.raises(ValueError, match="bad"):
        asyncio.run(scenario())


def test_run_on_a_cancelled_token_never_starts_the_work():
    started = []

    async def work():
        started.append(True)

    async def scenario():
        token = CancellationToken()
        token.cancel()
        await token.run(work())

    with pytest.raises(ExtractionCancelledError):
        asyncio.run(scenario())
    assert started == []


def test_cancel_interrupts_pending_work():
    finished = []

    async def slow():
        await asyncio.sleep(10)
        finished.append(True)

    async def scenario():
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        await token.run(slow())

    with pytest.raises(ExtractionCancelledError):
        asyncio.run(scenario())
    assert finished == []


def test_wait_returns_once_cancelled():
    async def scenario():
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel, "done")
        await asyncio.wait_for(token.wait(), timeout=1.0)
        return token.reason

    assert asyncio.run(scenario()) == "done"


def test_tokens_are_independent():
    first, second = CancellationToken(), CancellationToken()
    first.cancel()

    assert first.is_cancelled
    assert not second.is_cancelled
