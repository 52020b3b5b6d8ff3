import asyncio
import contextlib

from kohakuipam.ipam.guard import StateGuard
from kohakuipam.models.state import IpamState, Pool


async def _read(guard, order, name="reader"):
    async with guard.read():
        order.append(name)


async def _write(guard, order, name="writer"):
    async with guard.write():
        order.append(name)


def test_readers_share_access():
    async def scenario():
        guard = StateGuard()
        async with guard.read():
            async with guard.read():
                assert guard.readers == 2
        assert guard.readers == 0

    asyncio.run(scenario())


def test_writer_excludes_readers():
    async def scenario():
        guard = StateGuard()
        order = []
        async with guard.write():
            reader = asyncio.create_task(_read(guard, order))
            await asyncio.sleep(0.01)
            assert order == []
            order.append("writer")
        await reader
        assert order == ["writer", "reader"]

    asyncio.run(scenario())


def test_writers_are_serialized():
    async def scenario():
        guard = StateGuard()
        order = []
        async with guard.write():
            second = asyncio.create_task(_write(guard, order, "second"))
            await asyncio.sleep(0.01)
            assert order == []
            assert guard.writer_active
            order.append("first")
        await second
        assert order == ["first", "second"]

    asyncio.run(scenario())


def test_waiting_writer_blocks_new_readers():
    async def scenario():
        guard = StateGuard()
        order = []
        async with guard.read():
            writer = asyncio.create_task(_write(guard, order))
            await asyncio.sleep(0.01)
            late_reader = asyncio.create_task(_read(guard, order))
            await asyncio.sleep(0.01)
            assert order == []
        await asyncio.gather(writer, late_reader)
        assert order == ["writer", "reader"]

    asyncio.run(scenario())


def test_cancelled_writer_unblocks_readers():
    async def scenario():
        guard = StateGuard()
        order = []
        async with guard.read():
            writer = asyncio.create_task(_write(guard, order))
            await asyncio.sleep(0.01)
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer

            reader = asyncio.create_task(_read(guard, order))
            await asyncio.wait_for(reader, timeout=1)
        assert order == ["reader"]

    asyncio.run(scenario())


def test_replace_swaps_state():
    async def scenario():
        guard = StateGuard()
        new_state = IpamState(pools={"pool-a": Pool(id="pool-a", subnet="10.0.0.0/24")})
        await guard.replace(new_state)
        async with guard.read() as state:
            assert state is new_state
            assert list(state.pools) == ["pool-a"]

    asyncio.run(scenario())
