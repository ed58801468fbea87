import re
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Tuple

import dateparser
import httplib2
from google.auth.exceptions import TransportError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from .errors import MailboxError, MessageFetchError
from .models import InboxMessage, Label

GMAIL_PAGE_SIZE = 500

# failures of a single request, as opposed to the API rejecting it
TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error, TransportError)

def _get_header(headers: List[Dict[str, str]], name: str) -> str:
    for h in headers:
        if h.get("name", "").lower() == name.lower():
            return h.get("value", "")
    return ""

def _clean_text(s: str) -> str:
    s = re.sub(r"[\u200B-\u200D\uFEFF]", "", s or "")
    s = re.sub(r"[ \t]+", " ", s)
    return s.strip()

def split_sender(from_header: str) -> Tuple[str, str]:
    """'Acme Careers <jobs@acme.com>' -> ('Acme Careers', 'jobs@acme.com')"""
    m = re.match(r"\s*(.*?)\s*<([^>]+)>", from_header or "")
    if m:
        return m.group(1).strip().strip('"'), m.group(2).strip()
    return "", (from_header or "").strip()

def _received_at(message: Dict[str, Any], headers: List[Dict[str, str]]) -> datetime:
    internal = message.get("internalDate")
    if internal:
        return datetime.fromtimestamp(int(internal) / 1000, tz=timezone.utc)
    date_header = _get_header(headers, "Date")
    if date_header:
        parsed = dateparser.parse(date_header, settings={"TIMEZONE": "UTC", "RETURN_AS_TIMEZONE_AWARE": True})
        if parsed:
            return parsed
    return datetime.now(timezone.utc)

def parse_message(message: Dict[str, Any]) -> InboxMessage:
    headers = message.get("payload", {}).get("headers", [])
    sender_name, sender_email = split_sender(_get_header(headers, "From"))
    return InboxMessage(
        id=message["id"],
        thread_id=message.get("threadId", ""),
        label_ids=list(message.get("labelIds", [])),
        sender_name=_clean_text(sender_name),
        sender_email=_clean_text(sender_email),
        subject=_clean_text(_get_header(headers, "Subject")),
        snippet=message.get("snippet", ""),
        received_at=_received_at(message, headers),
    )

class GmailClient:
    """Thin wrapper over the Gmail v1 service for one mailbox."""

    def __init__(self, service, page_size: int = GMAIL_PAGE_SIZE, max_messages: Optional[int] = None):
        self.service = service
        self.page_size = page_size
        self.max_messages = max_messages

    @classmethod
    def from_access_token(cls, access_token: str, **kwargs) -> "GmailClient":
        creds = Credentials(token=access_token)
        service = build("gmail", "v1", credentials=creds, cache_discovery=False)
        return cls(service, **kwargs)

    def list_labels(self) -> List[Label]:
        try:
            resp = self.service.users().labels().list(userId="me").execute()
        except HttpError as e:
            raise MailboxError("Failed to fetch Gmail labels", str(e)) from e
        return [Label(id=l["id"], name=l.get("name", "")) for l in resp.get("labels", [])]

    def list_message_ids(self, query: str) -> List[str]:
        ids: List[str] = []
        page_token = None
        while True:
            try:
                resp = self.service.users().messages().list(
                    userId="me", q=query, maxResults=self.page_size, pageToken=page_token,
                ).execute()
            except HttpError as e:
                raise MailboxError("Failed to fetch Gmail messages", str(e)) from e
            ids.extend(m["id"] for m in resp.get("messages", []))
            if self.max_messages and len(ids) >= self.max_messages:
                logger.warning(f"[Gmail] Message cap of {self.max_messages} reached")
                return ids[:self.max_messages]
            page_token = resp.get("nextPageToken")
            if not page_token:
                return ids

    def get_message(self, msg_id: str) -> InboxMessage:
        try:
            raw = self.service.users().messages().get(userId="me", id=msg_id, format="full").execute()
        except HttpError as e:
            raise MessageFetchError(msg_id, str(e)) from e
        except TRANSPORT_ERRORS as e:
            raise MessageFetchError(msg_id, f"{type(e).__name__}: {e}") from e
        return parse_message(raw)
