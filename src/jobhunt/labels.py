"""
Mailbox label scheme and resolution of logical label names to provider label ids.

Users file job-hunt mail under a fixed set of labels, but mail clients let them
nest those labels under arbitrary folders ("Job Search/JH25 - Offer"), so a
provider label counts as a match when its name equals the logical name or ends
with it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import LabelConfigurationError
from .models import ApplicationStatus, Label

DEFAULT_STATUS_LABELS: Dict[str, ApplicationStatus] = {
    "JH25 - Applied": ApplicationStatus.APPLIED,
    "JH25 - Follow up": ApplicationStatus.FOLLOW_UP,
    "JH25 - Recruiter Screen": ApplicationStatus.RECRUITER_SCREEN,
    "JH25 - Hiring Manager": ApplicationStatus.HIRING_MANAGER,
    "JH25 - interviews": ApplicationStatus.INTERVIEWS,
    "JH25 - Offer": ApplicationStatus.OFFER,
    "JH25-Rejected": ApplicationStatus.REJECTED,
    "JH25 - Withdraw": ApplicationStatus.WITHDRAWN,
}

DEFAULT_NETWORKING_LABEL = "JH25 - Networking"


@dataclass(frozen=True)
class LabelScheme:
    status_labels: Dict[str, ApplicationStatus] = field(default_factory=lambda: dict(DEFAULT_STATUS_LABELS))
    networking_label: str = DEFAULT_NETWORKING_LABEL

    @classmethod
    def from_config(cls, gmail_cfg: Dict[str, Any]) -> "LabelScheme":
        raw = gmail_cfg.get("status_labels")
        status_labels = (
            {name: ApplicationStatus(value) for name, value in raw.items()}
            if raw else dict(DEFAULT_STATUS_LABELS)
        )
        return cls(
            status_labels=status_labels,
            networking_label=gmail_cfg.get("networking_label", DEFAULT_NETWORKING_LABEL),
        )

    def expected_names(self) -> List[str]:
        return list(self.status_labels) + [self.networking_label]


def label_matches(provider_name: str, logical_name: str) -> bool:
    return provider_name == logical_name or provider_name.endswith(logical_name)


def resolve_labels(labels: Iterable[Label], expected_names: List[str]) -> Dict[str, str]:
    """
    Map each expected logical name to the id of the first provider label matching it.

    Names with no matching label are left out. When several nested labels match
    the same logical name, the first one in the provider's listing order wins.

    Raises:
        LabelConfigurationError: If not a single expected name resolves
    """
    labels = list(labels)
    resolved: Dict[str, str] = {}
    for expected in expected_names:
        for label in labels:
            if label_matches(label.name, expected):
                resolved[expected] = label.id
                break
    if not resolved:
        raise LabelConfigurationError(list(expected_names), [l.name for l in labels])
    return resolved


def gmail_search_term(label_name: str) -> str:
    # Gmail search addresses labels with spaces and folder separators as dashes
    return "label:" + label_name.lower().replace("/", "-").replace(" ", "-")


def build_label_query(label_ids: Iterable[str], catalog: Dict[str, str]) -> str:
    """Disjunction of `label:` terms for the given provider label ids."""
    terms = [gmail_search_term(catalog[label_id]) for label_id in label_ids if label_id in catalog]
    return "{" + " ".join(terms) + "}"


def status_for_label(scheme: LabelScheme, provider_name: str) -> Optional[Tuple[str, ApplicationStatus]]:
    for logical, status in scheme.status_labels.items():
        if label_matches(provider_name, logical):
            return logical, status
    return None
