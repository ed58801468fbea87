from datetime import timedelta

from jobhunt.models import ApplicationStatus, ChangeSource, PendingUpdate
from jobhunt.reconcile import apply_pending_updates, apply_update, pick_latest

from conftest import NOW

def _update(msg_id, status, minutes, label="JH25 - Offer"):
    return PendingUpdate(msg_id, status, label, NOW - timedelta(minutes=minutes))

def test_pick_latest_ignores_fetch_order():
    older = _update("old", ApplicationStatus.INTERVIEWS, 60)
    newer = _update("new", ApplicationStatus.OFFER, 5)
    assert pick_latest([newer, older]).message_id == "new"
    assert pick_latest([older, newer]).message_id == "new"

def test_apply_update_writes_history(store):
    updates = [_update("m1", ApplicationStatus.INTERVIEWS, 90, "JH25 - interviews"),
               _update("m2", ApplicationStatus.OFFER, 10)]
    entry = apply_update(store, "owner-1", "app-acme", updates, NOW)
    assert store.applications["app-acme"].status is ApplicationStatus.OFFER
    assert store.applications["app-acme"].status_updated_at == NOW
    assert entry.previous_status is ApplicationStatus.APPLIED
    assert entry.source is ChangeSource.EMAIL
    assert entry.message_id == "m2"
    assert "JH25 - Offer" in entry.note and "2 messages" in entry.note
    assert store.history == [entry]

def test_same_status_is_noop(store):
    updates = [_update("m1", ApplicationStatus.APPLIED, 5, "JH25 - Applied")]
    assert apply_update(store, "owner-1", "app-acme", updates, NOW) is None
    assert store.status_writes == 0 and store.history == []

def test_missing_application_skipped(store):
    assert apply_update(store, "owner-1", "gone", [_update("m1", ApplicationStatus.OFFER, 5)], NOW) is None

def test_apply_pending_counts_changes(store):
    pending = {
        "app-acme": [_update("m1", ApplicationStatus.OFFER, 5)],
        "app-initech": [_update("m2", ApplicationStatus.APPLIED, 5, "JH25 - Applied")],
    }
    assert apply_pending_updates(store, "owner-1", pending, NOW) == 1
