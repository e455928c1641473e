import pytest

from services.alert_state import (
    AlertAction,
    AlertDecision,
    AlertLevel,
    AlertStateTracker,
    decide_alert,
)


@pytest.mark.parametrize(
    "current, has_full_info, expected",
    [
        (AlertLevel.NONE, False, AlertDecision(AlertAction.SEND_PARTIAL, AlertLevel.PARTIAL)),
        (AlertLevel.NONE, True, AlertDecision(AlertAction.SEND_FULL, AlertLevel.FULL)),
        (AlertLevel.PARTIAL, True, AlertDecision(AlertAction.SEND_FULL, AlertLevel.FULL)),
        (AlertLevel.PARTIAL, False, AlertDecision(AlertAction.NOTHING, AlertLevel.PARTIAL)),
        (AlertLevel.FULL, True, AlertDecision(AlertAction.NOTHING, AlertLevel.FULL)),
        (AlertLevel.FULL, False, AlertDecision(AlertAction.NOTHING, AlertLevel.FULL)),
    ],
)
def test_transition_table(current, has_full_info, expected):
    assert decide_alert(current, has_full_info) == expected


def test_decide_does_not_touch_state():
    tracker = AlertStateTracker()

    tracker.decide(7, has_full_info=False)
    tracker.decide(7, has_full_info=True)

    assert 7 not in tracker
    assert tracker.level_of(7) == AlertLevel.NONE


def test_unseen_ids_are_always_new():
    tracker = AlertStateTracker()
    tracker.commit(1, AlertLevel.FULL)

    for token_id in (2, 3, 999_999):
        assert tracker.decide(token_id, False).action == AlertAction.SEND_PARTIAL
        assert tracker.decide(token_id, True).action == AlertAction.SEND_FULL


def test_commit_moves_forward_only():
    tracker = AlertStateTracker()

    assert tracker.commit(5, AlertLevel.PARTIAL) is True
    assert tracker.commit(5, AlertLevel.FULL) is True
    assert tracker.commit(5, AlertLevel.PARTIAL) is False
    assert tracker.commit(5, AlertLevel.FULL) is False

    assert tracker.level_of(5) == AlertLevel.FULL
    assert len(tracker) == 1


def test_full_is_terminal_after_commit():
    tracker = AlertStateTracker()
    tracker.commit(5, AlertLevel.FULL)

    assert tracker.decide(5, True).action == AlertAction.NOTHING
    assert tracker.decide(5, False).action == AlertAction.NOTHING


def test_oldest_entries_are_evicted():
    tracker = AlertStateTracker(max_entries=3)
    for token_id in (1, 2, 3):
        tracker.commit(token_id, AlertLevel.PARTIAL)

    # touching 1 makes 2 the oldest
    tracker.commit(1, AlertLevel.FULL)
    tracker.commit(4, AlertLevel.PARTIAL)

    assert 2 not in tracker
    assert [t for t in (1, 3, 4) if t in tracker] == [1, 3, 4]
    assert len(tracker) == 3


def test_restore_skips_none_and_keeps_highest_level():
    tracker = AlertStateTracker()
    tracker.restore([(1, AlertLevel.PARTIAL), (2, AlertLevel.NONE), (1, AlertLevel.FULL), (3, AlertLevel.PARTIAL)])

    assert tracker.level_of(1) == AlertLevel.FULL
    assert 2 not in tracker
    assert tracker.level_of(3) == AlertLevel.PARTIAL


def test_max_entries_must_be_positive():
    with pytest.raises(ValueError):
        AlertStateTracker(max_entries=0)
