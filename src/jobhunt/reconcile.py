from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from .models import ChangeSource, PendingUpdate, StatusHistoryEntry

def pick_latest(updates: List[PendingUpdate]) -> PendingUpdate:
    # ties on receipt time keep fetch order
    return sorted(updates, key=lambda u: u.received_at, reverse=True)[0]

def apply_update(store, owner_id: str, application_id: str, updates: List[PendingUpdate],
                 now: datetime) -> Optional[StatusHistoryEntry]:
    """Apply the most recently received update to one application.

    Returns the history entry written, or None when the application is gone or
    already carries that status.
    """
    winner = pick_latest(updates)
    current = store.get_application(application_id)
    if current is None:
        logger.warning(f"[SYNC] Application {application_id} disappeared during sync")
        return None
    if current.status == winner.status:
        return None

    collapsed = len(updates) - 1
    note = f"Auto-updated from Gmail label: {winner.status_label}"
    if collapsed:
        note += f" (latest of {len(updates)} messages; {collapsed} older collapsed)"

    store.set_status(application_id, winner.status, now)
    entry = StatusHistoryEntry(
        application_id=application_id,
        owner_id=owner_id,
        previous_status=current.status,
        new_status=winner.status,
        source=ChangeSource.EMAIL,
        changed_at=now,
        message_id=winner.message_id,
        note=note,
    )
    store.append_history(entry)
    logger.info(f"[SYNC] {current.company_name}: {current.status.value} -> {winner.status.value}")
    return entry

def apply_pending_updates(store, owner_id: str, pending: Dict[str, List[PendingUpdate]],
                          now: datetime) -> int:
    """Returns how many applications actually changed status."""
    changed = 0
    for application_id, updates in pending.items():
        if updates and apply_update(store, owner_id, application_id, updates, now):
            changed += 1
    return changed
