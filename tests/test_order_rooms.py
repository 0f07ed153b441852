"""Tests for the in-memory order room broadcaster."""

import asyncio

from grocery_backend.services.order_rooms import OrderRoomBroadcaster


class FakeParticipant:
    def __init__(self, name):
        self.name = name
        self.received = []

    async def send_json(self, data):
        self.received.append(data)

    def __repr__(self):
        return f"FakeParticipant({self.name})"


class BrokenParticipant(FakeParticipant):
    async def send_json(self, data):
        raise RuntimeError("socket closed")


class SlowParticipant(FakeParticipant):
    async def send_json(self, data):
        await asyncio.sleep(5)
        self.received.append(data)


def publish(broadcaster, order_id, event, data=None):
    return asyncio.run(broadcaster.publish(order_id, event, data))


class TestJoinAndLeave:
    def test_first_join_creates_room(self):
        broadcaster = OrderRoomBroadcaster()
        alice = FakeParticipant("alice")

        assert not broadcaster.has_room("order-1")
        broadcaster.join("order-1", alice)

        assert broadcaster.has_room("order-1")
        assert broadcaster.members("order-1") == {alice}
        assert broadcaster.rooms_of(alice) == {"order-1"}

    def test_join_is_idempotent(self):
        broadcaster = OrderRoomBroadcaster()
        alice = FakeParticipant("alice")

        broadcaster.join("order-1", alice)
        broadcaster.join("order-1", alice)

        assert broadcaster.members("order-1") == {alice}
        assert publish(broadcaster, "order-1", "orderConfirmed") == 1
        assert len(alice.received) == 1

    def test_leave_removes_from_every_room(self):
        broadcaster = OrderRoomBroadcaster()
        alice = FakeParticipant("alice")
        bob = FakeParticipant("bob")
        broadcaster.join("order-1", alice)
        broadcaster.join("order-2", alice)
        broadcaster.join("order-2", bob)

        assert broadcaster.leave(alice) == {"order-1", "order-2"}

        assert not broadcaster.has_room("order-1")
        assert broadcaster.members("order-2") == {bob}
        assert broadcaster.rooms_of(alice) == set()

    def test_leave_unknown_participant(self):
        broadcaster = OrderRoomBroadcaster()
        assert broadcaster.leave(FakeParticipant("ghost")) == set()

    def test_room_is_recreated_after_becoming_empty(self):
        broadcaster = OrderRoomBroadcaster()
        alice = FakeParticipant("alice")
        bob = FakeParticipant("bob")

        broadcaster.join("order-1", alice)
        broadcaster.leave(alice)
        assert not broadcaster.has_room("order-1")

        broadcaster.join("order-1", bob)
        assert publish(broadcaster, "order-1", "liveTrackingUpdates", {"lat": 1}) == 1
        assert bob.received == [{"event": "liveTrackingUpdates", "data": {"lat": 1}}]
        assert alice.received == []


class TestPublish:
    def test_delivers_to_current_members_only(self):
        broadcaster = OrderRoomBroadcaster()
        alice = FakeParticipant("alice")
        bob = FakeParticipant("bob")
        outsider = FakeParticipant("outsider")
        broadcaster.join("order-1", alice)
        broadcaster.join("order-1", bob)
        broadcaster.join("order-2", outsider)

        delivered = publish(broadcaster, "order-1", "orderConfirmed", {"status": "confirmed"})

        assert delivered == 2
        assert alice.received == [{"event": "orderConfirmed", "data": {"status": "confirmed"}}]
        assert bob.received == alice.received
        assert outsider.received == []

    def test_no_replay_for_late_joiners(self):
        broadcaster = OrderRoomBroadcaster()
        early = FakeParticipant("early")
        broadcaster.join("X", early)

        publish(broadcaster, "X", "e")
        late = FakeParticipant("late")
        broadcaster.join("X", late)

        assert early.received == [{"event": "e", "data": None}]
        assert late.received == []

    def test_publish_to_missing_room(self):
        broadcaster = OrderRoomBroadcaster()
        assert publish(broadcaster, "nobody", "orderPickedUp") == 0
        assert not broadcaster.has_room("nobody")

    def test_no_delivery_after_leave(self):
        broadcaster = OrderRoomBroadcaster()
        alice = FakeParticipant("alice")
        broadcaster.join("order-1", alice)
        broadcaster.leave(alice)

        publish(broadcaster, "order-1", "orderDelivered")

        assert alice.received == []

    def test_failing_member_does_not_block_others(self):
        broadcaster = OrderRoomBroadcaster(send_timeout=1.0)
        healthy = FakeParticipant("healthy")
        broken = BrokenParticipant("broken")
        broadcaster.join("order-1", healthy)
        broadcaster.join("order-1", broken)
        broadcaster.join("order-2", broken)

        assert publish(broadcaster, "order-1", "orderConfirmed") == 1

        assert healthy.received == [{"event": "orderConfirmed", "data": None}]
        assert broadcaster.members("order-1") == {healthy}
        assert not broadcaster.has_room("order-2")

    def test_slow_member_times_out(self):
        broadcaster = OrderRoomBroadcaster(send_timeout=0.05)
        healthy = FakeParticipant("healthy")
        slow = SlowParticipant("slow")
        broadcaster.join("order-1", healthy)
        broadcaster.join("order-1", slow)

        assert publish(broadcaster, "order-1", "orderConfirmed") == 1

        assert len(healthy.received) == 1
        assert slow.received == []
        assert broadcaster.rooms_of(slow) == set()
