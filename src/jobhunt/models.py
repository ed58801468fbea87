from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from typing import Any, Dict, List, Optional


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    FOLLOW_UP = "follow_up"
    RECRUITER_SCREEN = "recruiter_screen"
    HIRING_MANAGER = "hiring_manager"
    INTERVIEWS = "interviews"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


TERMINAL_STATUSES = {ApplicationStatus.OFFER, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN}


class ChangeSource(str, Enum):
    MANUAL = "manual"
    EMAIL = "email"
    IMPORT = "import"


@dataclass
class Application:
    id: str
    owner_id: str
    company_name: str
    job_title: str
    status: ApplicationStatus
    status_updated_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    application_date: Optional[date] = None
    location: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    company_summary: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = None
    company_type: Optional[str] = None
    stock_ticker: Optional[str] = None
    fit_score: Optional[int] = None
    fit_analysis: Optional[Dict[str, Any]] = None
    google_drive_file_id: Optional[str] = None
    job_description_text: Optional[str] = None


@dataclass(frozen=True)
class StatusHistoryEntry:
    application_id: str
    owner_id: str
    previous_status: Optional[ApplicationStatus]   # None when the application was created
    new_status: ApplicationStatus
    source: ChangeSource
    changed_at: datetime
    message_id: Optional[str] = None
    note: str = ""


@dataclass(frozen=True)
class Label:
    id: str
    name: str


@dataclass
class InboxMessage:
    id: str
    thread_id: str
    label_ids: List[str]
    sender_name: str
    sender_email: str
    subject: str
    snippet: str
    received_at: datetime


@dataclass(frozen=True)
class PendingUpdate:
    message_id: str
    status: ApplicationStatus
    status_label: str
    received_at: datetime


@dataclass(frozen=True)
class UnmatchedNotification:
    owner_id: str
    message_id: str
    thread_id: str
    subject: str
    sender_email: str
    sender_name: str
    snippet: str
    label_name: str
    suggested_status: ApplicationStatus
    received_at: datetime


@dataclass(frozen=True)
class SyncCredentialState:
    owner_id: str
    access_token: str
    refresh_token: str
    token_expiry: datetime
    sync_enabled: bool = True
    last_sync_at: Optional[datetime] = None
    version: int = 0

    def is_expired(self, now: datetime) -> bool:
        return self.token_expiry < now


@dataclass
class SyncResult:
    success: bool
    processed: int = 0
    matched: int = 0
    unmatched: int = 0
    networking_contacts: int = 0
    debug: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": self.success,
            "processed": self.processed,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "networkingContacts": self.networking_contacts,
        }
        if self.debug is not None:
            body["debug"] = self.debug
        return body


@dataclass
class DriveFile:
    id: str
    name: str
    mime_type: str
    web_view_link: str = ""
    modified_time: str = ""


@dataclass
class ImportProgress:
    total: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    failures: Dict[str, str] = field(default_factory=dict)   # file name -> error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": self.errors,
            "failures": self.failures,
        }


@dataclass
class Insight:
    """One generated search-strategy report, kept so the latest can be shown again."""
    id: str
    owner_id: str
    content: Dict[str, Any]
    generated_at: datetime
    insight_type: str = "weekly_strategy"
    title: str = "Weekly Job Search Strategy Update"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "insight_type": self.insight_type,
            "title": self.title,
            "content": self.content,
            "generated_at": self.generated_at.isoformat(),
        }
