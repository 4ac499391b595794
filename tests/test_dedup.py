"""Tests for event de-duplication."""

from matchcast.scheduler import accept_new_events

from .conftest import event


class TestAcceptNewEvents:
    def test_accepts_unseen_events_in_order(self):
        accepted, cursor = accept_new_events([event("a"), event("b")], [], "")
        assert [e.id for e in accepted] == ["a", "b"]
        assert cursor == "b"

    def test_rejects_event_equal_to_cursor(self):
        accepted, cursor = accept_new_events([event("a")], [], "a")
        assert accepted == []
        assert cursor == "a"

    def test_rejects_live_ids(self):
        accepted, cursor = accept_new_events([event("a"), event("b")], ["a"], "")
        assert [e.id for e in accepted] == ["b"]
        assert cursor == "b"

    def test_rejects_repeats_within_batch(self):
        accepted, _ = accept_new_events([event("x"), event("x")], [], "")
        assert [e.id for e in accepted] == ["x"]

    def test_cursor_unchanged_when_nothing_accepted(self):
        accepted, cursor = accept_new_events([event("a")], ["a"], "z")
        assert accepted == []
        assert cursor == "z"

    def test_pruned_id_older_than_cursor_is_accepted_again(self):
        # Only the live queue and the single cursor are remembered
        accepted, cursor = accept_new_events([event("old")], [], "newer")
        assert [e.id for e in accepted] == ["old"]
        assert cursor == "old"

    def test_empty_batch(self):
        assert accept_new_events([], ["a"], "c") == ([], "c")
