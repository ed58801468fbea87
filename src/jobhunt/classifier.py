"""
Classification of labeled inbox messages and grouping of status updates per application.

A message is either networking mail, a status update for some application, or
unrelated to the job hunt. Status updates are attached to the application their
sender/subject points at, or staged as unmatched notifications when nothing fits.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from loguru import logger

from .company import extract_company
from .labels import LabelScheme, label_matches, status_for_label
from .matcher import ApplicationMatcher
from .models import ApplicationStatus, InboxMessage, PendingUpdate, UnmatchedNotification


class MessageKind(str, Enum):
    NETWORKING = "networking"
    STATUS_UPDATE = "status_update"
    UNCLASSIFIABLE = "unclassifiable"


@dataclass(frozen=True)
class Classification:
    kind: MessageKind
    status_label: Optional[str] = None
    status: Optional[ApplicationStatus] = None


def classify_labels(label_names: List[str], scheme: LabelScheme) -> Classification:
    if any(label_matches(name, scheme.networking_label) for name in label_names):
        return Classification(MessageKind.NETWORKING)
    for name in label_names:
        hit = status_for_label(scheme, name)
        if hit:
            logical, status = hit
            return Classification(MessageKind.STATUS_UPDATE, logical, status)
    return Classification(MessageKind.UNCLASSIFIABLE)


@dataclass
class MessageGrouper:
    owner_id: str
    scheme: LabelScheme
    catalog: Dict[str, str]          # provider label id -> provider label name
    matcher: ApplicationMatcher
    pending: Dict[str, List[PendingUpdate]] = field(default_factory=dict)
    unmatched: List[UnmatchedNotification] = field(default_factory=list)
    processed: int = 0
    networking: int = 0

    def label_names(self, message: InboxMessage) -> List[str]:
        return [self.catalog[i] for i in message.label_ids if i in self.catalog]

    def add(self, message: InboxMessage) -> Classification:
        result = classify_labels(self.label_names(message), self.scheme)

        if result.kind is MessageKind.NETWORKING:
            # contact extraction from networking mail is not built yet; only counted
            self.networking += 1
            self.processed += 1
            return result
        if result.kind is MessageKind.UNCLASSIFIABLE:
            return result

        company = extract_company(message.subject, message.sender_name, message.sender_email)
        application_id = self.matcher.match(company)
        if application_id:
            self.pending.setdefault(application_id, []).append(PendingUpdate(
                message_id=message.id,
                status=result.status,
                status_label=result.status_label,
                received_at=message.received_at,
            ))
        else:
            logger.debug(f"[SYNC] No application for {company!r} (message {message.id})")
            self.unmatched.append(UnmatchedNotification(
                owner_id=self.owner_id,
                message_id=message.id,
                thread_id=message.thread_id,
                subject=message.subject,
                sender_email=message.sender_email,
                sender_name=message.sender_name,
                snippet=message.snippet,
                label_name=result.status_label,
                suggested_status=result.status,
                received_at=message.received_at,
            ))
        self.processed += 1
        return result
