"""
Mailbox credentials: token refresh, first-time account connection and the
per-owner sync credential records kept in the state file.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from loguru import logger

from .errors import SyncCredentialError
from .models import SyncCredentialState
from .settings import Settings, load_state, save_state

TOKEN_URI = "https://oauth2.googleapis.com/token"

SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def refresh_access_token(refresh_token: str, settings: Settings) -> Tuple[str, int]:
    """
    Exchange a refresh token for a new access token.

    Returns:
        (access_token, expires_in_seconds)

    Raises:
        SyncCredentialError: If Google rejects the refresh token or the client is not configured
    """
    if not settings.google_client_id or not settings.google_client_secret:
        raise SyncCredentialError("Google OAuth client is not configured")
    creds = Credentials(
        token=None,
        refresh_token=refresh_token,
        token_uri=TOKEN_URI,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
    )
    try:
        creds.refresh(Request())
    except RefreshError as e:
        raise SyncCredentialError("Failed to refresh access token", str(e)) from e
    expires_in = 3600
    if creds.expiry:
        # google-auth reports expiry as naive UTC
        expires_in = int((creds.expiry.replace(tzinfo=timezone.utc) - _utcnow()).total_seconds())
    return creds.token, expires_in


def authorize_account(owner_id: str, client_secret_file: str) -> SyncCredentialState:
    """Run the browser consent flow once and return a fresh, enabled sync record."""
    flow = InstalledAppFlow.from_client_secrets_file(client_secret_file, SCOPES)
    creds = flow.run_local_server(port=0)
    expiry = creds.expiry.replace(tzinfo=timezone.utc) if creds.expiry else _utcnow() + timedelta(hours=1)
    return SyncCredentialState(
        owner_id=owner_id,
        access_token=creds.token,
        refresh_token=creds.refresh_token,
        token_expiry=expiry,
    )


def _to_record(state: SyncCredentialState) -> Dict[str, Any]:
    return {
        "access_token": state.access_token,
        "refresh_token": state.refresh_token,
        "token_expiry": state.token_expiry.isoformat(),
        "sync_enabled": state.sync_enabled,
        "last_sync_at": state.last_sync_at.isoformat() if state.last_sync_at else None,
        "version": state.version,
    }


def _from_record(owner_id: str, record: Dict[str, Any]) -> SyncCredentialState:
    last_sync = record.get("last_sync_at")
    return SyncCredentialState(
        owner_id=owner_id,
        access_token=record["access_token"],
        refresh_token=record["refresh_token"],
        token_expiry=datetime.fromisoformat(record["token_expiry"]),
        sync_enabled=bool(record.get("sync_enabled", True)),
        last_sync_at=datetime.fromisoformat(last_sync) if last_sync else None,
        version=int(record.get("version", 0)),
    )


class SyncStateRepository:
    """Sync credential records keyed by owner, persisted in the JSON state file."""

    def __init__(self, path: Optional[str] = None):
        self.path = path

    def load(self, owner_id: str) -> Optional[SyncCredentialState]:
        record = load_state(self.path).get("owners", {}).get(owner_id)
        return _from_record(owner_id, record) if record else None

    def save(self, state: SyncCredentialState) -> SyncCredentialState:
        saved = replace(state, version=state.version + 1)
        data = load_state(self.path)
        data.setdefault("owners", {})[state.owner_id] = _to_record(saved)
        save_state(data, self.path)
        logger.debug(f"[SYNC] Saved sync state for {state.owner_id} (v{saved.version})")
        return saved


def renew(repo: SyncStateRepository, state: SyncCredentialState,
          refresher: Callable[[str], Tuple[str, int]], now: datetime) -> SyncCredentialState:
    """Swap in a fresh access token and persist it; the stored record is returned."""
    access_token, expires_in = refresher(state.refresh_token)
    return repo.save(replace(
        state,
        access_token=access_token,
        token_expiry=now + timedelta(seconds=expires_in),
    ))
