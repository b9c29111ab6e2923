"""
Tests for the in-memory room registry
"""

import asyncio

import pytest

from schemas.messages import Role


class TestRoomRegistry:
    def test_get_or_create_returns_same_room(self, registry):
        first = registry.get_or_create("R1")
        assert registry.get_or_create("R1") is first
        assert "R1" in registry
        assert len(registry) == 1

    def test_room_ids_are_not_normalized(self, registry):
        registry.get_or_create("Room")
        registry.get_or_create("room")
        registry.get_or_create(" room")
        assert sorted(registry.room_ids()) == [" room", "Room", "room"]

    def test_reclaim_ignores_occupied_room(self, registry, make_handle):
        room = registry.get_or_create("R1")
        room._slots[Role.PRIMARY] = make_handle()
        assert registry.try_reclaim("R1") is False
        assert registry.get("R1") is room

    def test_reclaim_is_idempotent(self, registry):
        registry.get_or_create("R1")
        assert registry.try_reclaim("R1") is True
        assert registry.try_reclaim("R1") is False
        assert registry.try_reclaim("never-created") is False
        assert "R1" not in registry

    @pytest.mark.asyncio
    async def test_room_removed_after_both_leave_in_either_order(self, registry, make_handle):
        for first_out, second_out in ((Role.PRIMARY, Role.SECONDARY), (Role.SECONDARY, Role.PRIMARY)):
            room = registry.get_or_create("R1")
            handles = {Role.PRIMARY: make_handle(), Role.SECONDARY: make_handle()}
            await room.join(handles[Role.PRIMARY])
            await room.join(handles[Role.SECONDARY])

            await room.leave(first_out, handles[first_out])
            assert "R1" in registry
            await room.leave(second_out, handles[second_out])
            assert "R1" not in registry

    @pytest.mark.asyncio
    async def test_fresh_room_after_reclaim(self, registry, make_handle):
        room = registry.get_or_create("R1")
        host = make_handle()
        await room.join(host)
        await room.leave(Role.PRIMARY, host)

        fresh = registry.get_or_create("R1")
        assert fresh is not room
        assert await fresh.join(make_handle()) is Role.PRIMARY

    @pytest.mark.asyncio
    async def test_rooms_are_independent(self, registry, make_handle):
        a, b = make_handle(), make_handle()
        await registry.get_or_create("R1").join(a)
        assert await registry.get_or_create("R2").join(b) is Role.PRIMARY
        assert len(registry) == 2


async def join_by_id(registry, room_id, handle):
    return await registry.get_or_create(room_id).join(handle)


class TestConcurrentJoins:
    """Slot changes must not interleave, even while notifications are in flight"""

    @pytest.mark.asyncio
    async def test_simultaneous_joins_follow_arrival_order(self, registry, make_handle):
        handles = [make_handle(yield_on_send=True) for _ in range(3)]

        roles = await asyncio.gather(*(join_by_id(registry, "R", h) for h in handles))

        assert roles == [Role.PRIMARY, Role.SECONDARY, None]
        assert len(registry) == 1
        room = registry.get("R")
        assert room.primary is handles[0] and room.secondary is handles[1]
        assert handles[0].websocket.envelopes() == [{"type": "role", "role": "host"}, {"type": "joined"}]
        assert handles[2].websocket.closed_with[0] == 4000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("leave_first", [True, False])
    async def test_join_racing_reclaim_lands_in_registered_room(self, registry, make_handle, leave_first):
        old_room = registry.get_or_create("R")
        host = make_handle(yield_on_send=True)
        await old_room.join(host)
        newcomer = make_handle(yield_on_send=True)

        leaving = old_room.leave(Role.PRIMARY, host)
        joining = join_by_id(registry, "R", newcomer)
        steps = [leaving, joining] if leave_first else [joining, leaving]
        await asyncio.gather(*steps)

        room = registry.get("R")
        assert room is not None
        assert newcomer.is_bound
        assert room.occupant(newcomer.role) is newcomer
        assert room.primary is not host
        if leave_first:
            assert room is not old_room
            assert newcomer.role is Role.PRIMARY
        else:
            assert room is old_room
            assert newcomer.role is Role.SECONDARY
            assert {"type": "left"} in newcomer.websocket.envelopes()
