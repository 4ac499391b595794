"""Tests for BroadcastQueue transitions."""

import pytest

from matchcast.scheduler import BroadcastQueue
from matchcast.shared.models import (
    ORIGIN_MANUAL,
    ORIGIN_REMOTE,
    STATE_ACTIVE,
    STATE_DONE,
    STATE_QUEUED,
    QueueItem,
)


def item(item_id: str, origin: str = ORIGIN_REMOTE) -> QueueItem:
    return QueueItem(id=item_id, origin=origin, label=f"Item {item_id}")


@pytest.fixture
def queue() -> BroadcastQueue:
    q = BroadcastQueue()
    q.append([item("a"), item("b"), item("c")])
    q.promote_next()
    return q


def states(queue: BroadcastQueue) -> list[tuple[str, str]]:
    return [(i.id, i.state) for i in queue]


class TestPromotion:
    def test_promote_next_takes_first_queued(self, queue):
        assert queue.active().id == "a"
        assert queue.active_count() == 1

    def test_promote_refuses_second_active(self, queue):
        with pytest.raises(RuntimeError):
            queue.promote(queue.get("b"))

    def test_promote_next_skips_done(self):
        q = BroadcastQueue()
        q.append([item("a"), item("b")])
        q.get("a").state = STATE_DONE
        assert q.promote_next().id == "b"

    def test_activation_serial_bumps(self, queue):
        serial = queue.activation_serial
        queue.play("a")
        assert queue.activation_serial == serial + 1


class TestComplete:
    def test_prunes_and_promotes_with_auto_play(self, queue):
        finished = queue.complete(auto_play=True)
        assert finished.id == "a"
        assert finished.state == STATE_DONE
        assert states(queue) == [("b", STATE_ACTIVE), ("c", STATE_QUEUED)]

    def test_without_auto_play_leaves_queue_idle(self, queue):
        queue.complete(auto_play=False)
        assert queue.active() is None
        assert queue.ids() == ["b", "c"]

    def test_stale_completion_is_ignored(self, queue):
        assert queue.complete("b", auto_play=True) is None
        assert queue.active().id == "a"
        assert len(queue) == 3

    def test_nothing_active(self):
        q = BroadcastQueue()
        q.append([item("a")])
        assert q.complete(auto_play=True) is None
        assert q.active() is None


class TestStop:
    def test_stop_active_keeps_item_as_done(self, queue):
        stopped = queue.stop_active()
        assert stopped.id == "a"
        assert states(queue)[0] == ("a", STATE_DONE)
        assert queue.active() is None

    def test_stop_item_only_affects_active(self, queue):
        assert queue.stop_item("b") is None
        assert queue.stop_item("a").state == STATE_DONE
        assert queue.active() is None


class TestClearAndRemove:
    def test_clear_keeps_active(self, queue):
        assert queue.clear() == 2
        assert states(queue) == [("a", STATE_ACTIVE)]

    def test_clear_when_idle_empties_queue(self):
        q = BroadcastQueue()
        q.append([item("a"), item("b")])
        q.clear()
        assert len(q) == 0

    def test_remove_waiting_item(self, queue):
        queue.remove("b", auto_play=True)
        assert queue.ids() == ["a", "c"]
        assert queue.active().id == "a"

    def test_remove_active_promotes_successor(self, queue):
        queue.remove("a", auto_play=True)
        assert states(queue) == [("b", STATE_ACTIVE), ("c", STATE_QUEUED)]

    def test_remove_active_without_auto_play(self, queue):
        queue.remove("a", auto_play=False)
        assert queue.active() is None

    def test_remove_unknown(self, queue):
        assert queue.remove("zzz", auto_play=True) is None
        assert len(queue) == 3


class TestPlay:
    def test_play_demotes_current_and_moves_target_to_front(self, queue):
        queue.play("c")
        assert states(queue) == [
            ("c", STATE_ACTIVE),
            ("a", STATE_QUEUED),
            ("b", STATE_QUEUED),
        ]

    def test_replay_done_item(self, queue):
        queue.stop_active()
        queue.play("a")
        assert queue.active().id == "a"
        assert queue.active_count() == 1

    def test_play_unknown(self, queue):
        assert queue.play("zzz") is None
        assert queue.active().id == "a"


class TestReorder:
    def test_applies_given_order(self, queue):
        queue.reorder(["c", "a", "b"])
        assert queue.ids() == ["c", "a", "b"]
        assert queue.active().id == "a"

    def test_unknown_ids_ignored_and_missing_appended(self, queue):
        queue.reorder(["c", "ghost"])
        assert queue.ids() == ["c", "a", "b"]


class TestInjection:
    def test_inject_after_active(self, queue):
        queue.inject_after_active([item("m", ORIGIN_MANUAL)])
        assert queue.ids() == ["a", "m", "b", "c"]
        assert queue.active().id == "a"

    def test_inject_after_active_when_idle_goes_on_air(self):
        q = BroadcastQueue()
        q.append([item("b")])
        promoted = q.inject_after_active([item("m", ORIGIN_MANUAL)])
        assert promoted.id == "m"
        assert states(q) == [("m", STATE_ACTIVE), ("b", STATE_QUEUED)]

    def test_inject_front_keeps_active_first(self, queue):
        queue.inject_front([item("x"), item("y")])
        assert queue.ids() == ["a", "x", "y", "b", "c"]
        assert queue.active().id == "a"

    def test_inject_front_when_idle(self):
        q = BroadcastQueue()
        q.append([item("b")])
        q.inject_front([item("x"), item("y")])
        assert states(q) == [
            ("x", STATE_ACTIVE),
            ("y", STATE_QUEUED),
            ("b", STATE_QUEUED),
        ]

    def test_inject_nothing(self, queue):
        assert queue.inject_front([]) is None
        assert queue.inject_after_active([]) is None
        assert len(queue) == 3
