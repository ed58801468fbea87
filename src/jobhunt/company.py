import re
from typing import Callable, Optional, Sequence

SUBJECT_COMPANY = re.compile(r"\b(?i:at|for)\s+([A-Z][A-Za-z0-9&]*(?:[ \t]+[A-Za-z0-9&]+)*)")

SUBJECT_STOPWORDS = {"the", "a", "an", "your"}
GENERIC_SENDER_TERMS = ("noreply", "no-reply", "info", "contact", "support", "hello", "team", "recruiter", "jobs", "careers")
ATS_DOMAINS = {"myworkday", "workday", "greenhouse", "lever", "jobvite", "smartrecruiters"}
FREEMAIL_DOMAINS = ("gmail.com", "yahoo.com", "outlook.com")

Heuristic = Callable[[str, str, str], Optional[str]]

def from_subject(subject: str, sender_name: str, sender_email: str) -> Optional[str]:
    for m in SUBJECT_COMPANY.finditer(subject or ""):
        candidate = m.group(1).strip()
        if candidate.lower() in SUBJECT_STOPWORDS:
            continue
        return candidate
    return None

def from_sender_local_part(subject: str, sender_name: str, sender_email: str) -> Optional[str]:
    if "@" not in (sender_email or ""):
        return None
    local = sender_email.split("@", 1)[0].strip()
    lowered = local.lower()
    if len(local) <= 2 or any(term in lowered for term in GENERIC_SENDER_TERMS):
        return None
    return local.title()

def from_sender_domain(subject: str, sender_name: str, sender_email: str) -> Optional[str]:
    if "@" not in (sender_email or ""):
        return None
    domain = sender_email.split("@", 1)[1].strip().lower()
    if any(free in domain for free in FREEMAIL_DOMAINS):
        return None
    head = domain.split(".", 1)[0]
    if not head or head in ATS_DOMAINS:
        return None
    return head.title()

def from_sender_name(subject: str, sender_name: str, sender_email: str) -> Optional[str]:
    # "Jane Doe @ Acme"
    if "@" not in (sender_name or ""):
        return None
    return sender_name.split("@", 1)[1].strip() or None

# tried in order; the first non-empty result wins
HEURISTICS: Sequence[Heuristic] = (
    from_subject,
    from_sender_local_part,
    from_sender_domain,
    from_sender_name,
)

def extract_company(subject: str, sender_name: str, sender_email: str,
                    heuristics: Sequence[Heuristic] = HEURISTICS) -> Optional[str]:
    for heuristic in heuristics:
        company = heuristic(subject, sender_name, sender_email)
        if company:
            return company
    return None
