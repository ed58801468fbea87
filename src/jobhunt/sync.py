"""
Mailbox synchronization run.

One run walks a fixed sequence of phases:

    IDLE -> CREDENTIAL_CHECK -> [REFRESHING] -> LABEL_RESOLUTION -> FETCHING
         -> PROCESSING -> PERSISTING -> DONE

and ends in ERROR if a mailbox-wide or credential call fails. Failures on a
single message never end a run; the message is skipped and reconsidered next
time since its labels persist in the mailbox.
"""

from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from loguru import logger

from .classifier import MessageGrouper
from .credentials import SyncStateRepository, refresh_access_token, renew
from .email_client import GmailClient
from .errors import LabelConfigurationError, MessageFetchError, SyncNotConfiguredError
from .labels import LabelScheme, build_label_query, resolve_labels
from .matcher import ApplicationMatcher
from .models import SyncCredentialState, SyncResult
from .reconcile import apply_pending_updates
from .settings import Settings


class SyncPhase(str, Enum):
    IDLE = "idle"
    CREDENTIAL_CHECK = "credential_check"
    REFRESHING = "refreshing"
    LABEL_RESOLUTION = "label_resolution"
    FETCHING = "fetching"
    PROCESSING = "processing"
    PERSISTING = "persisting"
    DONE = "done"
    ERROR = "error"


Refresher = Callable[[str], Tuple[str, int]]
MailboxFactory = Callable[[str], GmailClient]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncJob:
    """
    Reconciles one owner's labeled mailbox against their tracked applications.

    Args:
        settings: Loaded configuration (label scheme, paging limits, OAuth client)
        store: Application store (see sheets_store.SheetsStore)
        sync_states: Repository of per-owner sync credential records
        refresher: Exchanges a refresh token for (access_token, expires_in)
        mailbox_factory: Builds a mailbox client from an access token
        clock: Returns the current aware UTC time
    """

    def __init__(
        self,
        settings: Settings,
        store,
        sync_states: SyncStateRepository,
        refresher: Optional[Refresher] = None,
        mailbox_factory: Optional[MailboxFactory] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings
        self.store = store
        self.sync_states = sync_states
        self.scheme = LabelScheme.from_config(settings.gmail)
        self.refresher = refresher or (lambda token: refresh_access_token(token, settings))
        self.mailbox_factory = mailbox_factory or self._gmail_client
        self.clock = clock
        self.phase = SyncPhase.IDLE

    def _gmail_client(self, access_token: str) -> GmailClient:
        return GmailClient.from_access_token(
            access_token,
            page_size=int(self.settings.gmail.get("page_size", 500)),
            max_messages=self.settings.gmail.get("max_messages"),
        )

    def _enter(self, phase: SyncPhase) -> None:
        logger.debug(f"[SYNC] {self.phase.value} -> {phase.value}")
        self.phase = phase

    def run(self, owner_id: str) -> SyncResult:
        self._enter(SyncPhase.CREDENTIAL_CHECK)
        try:
            state = self._check_credentials(owner_id)
        except Exception:
            self._enter(SyncPhase.ERROR)
            raise

        try:
            result = self._reconcile(owner_id, state)
        except Exception:
            self._enter(SyncPhase.ERROR)
            self._stamp(state)
            raise

        self._enter(SyncPhase.PERSISTING)
        self._stamp(state)
        self._enter(SyncPhase.DONE)
        logger.info(
            f"[SYNC] {owner_id}: processed={result.processed} matched={result.matched} "
            f"unmatched={result.unmatched} networking={result.networking_contacts}"
        )
        return result

    def _check_credentials(self, owner_id: str) -> SyncCredentialState:
        state = self.sync_states.load(owner_id)
        if state is None:
            raise SyncNotConfiguredError("Gmail sync not configured. Please connect your Google account.")
        if not state.sync_enabled:
            raise SyncNotConfiguredError("Gmail sync is disabled")

        now = self.clock()
        if state.is_expired(now):
            self._enter(SyncPhase.REFRESHING)
            state = renew(self.sync_states, state, self.refresher, now)
        return state

    def _reconcile(self, owner_id: str, state: SyncCredentialState) -> SyncResult:
        mailbox = self.mailbox_factory(state.access_token)

        self._enter(SyncPhase.LABEL_RESOLUTION)
        labels = mailbox.list_labels()
        catalog: Dict[str, str] = {l.id: l.name for l in labels}
        try:
            resolved = resolve_labels(labels, self.scheme.expected_names())
        except LabelConfigurationError as e:
            logger.warning(f"[SYNC] {owner_id}: none of the job-hunt labels exist in the mailbox")
            return SyncResult(success=False, debug={"message": e.message, **e.details})

        self._enter(SyncPhase.FETCHING)
        message_ids = mailbox.list_message_ids(build_label_query(resolved.values(), catalog))
        logger.info(f"[SYNC] {owner_id}: {len(message_ids)} labeled messages, {len(resolved)} labels resolved")

        self._enter(SyncPhase.PROCESSING)
        grouper = MessageGrouper(
            owner_id=owner_id,
            scheme=self.scheme,
            catalog=catalog,
            matcher=ApplicationMatcher.for_owner(self.store, owner_id),
        )
        for message_id in message_ids:
            try:
                message = mailbox.get_message(message_id)
            except MessageFetchError as e:
                logger.warning(f"[Gmail] {e.message}: {e.details}")
                continue
            grouper.add(message)

        matched = apply_pending_updates(self.store, owner_id, grouper.pending, self.clock())
        for notification in grouper.unmatched:
            self.store.add_unmatched(notification)

        return SyncResult(
            success=True,
            processed=grouper.processed,
            matched=matched,
            unmatched=len(grouper.unmatched),
            networking_contacts=grouper.networking,
        )

    def _stamp(self, state: SyncCredentialState) -> None:
        self.sync_states.save(replace(state, last_sync_at=self.clock()))
