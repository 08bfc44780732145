import asyncio

import pytest

from formflow.application.utils.locks import KeyedLocks


@pytest.mark.asyncio
async def test_same_key_is_exclusive_and_released():
    locks = KeyedLocks()
    order = []

    async def worker(name):
        async with locks.hold("c1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_overlap():
    locks = KeyedLocks()
    entered = asyncio.Event()

    async def first():
        async with locks.hold("c1"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def second():
        async with locks.hold("c2"):
            entered.set()

    await asyncio.gather(first(), second())
    assert len(locks) == 0
