import re
from typing import Iterable, List, Optional

from .models import Application

_NON_ALNUM = re.compile(r"[^a-z0-9]")

def normalize_company(name: str) -> str:
    return _NON_ALNUM.sub("", (name or "").lower())

def exact_match(candidate: str, applications: Iterable[Application]) -> Optional[str]:
    wanted = candidate.strip().lower()
    for app in applications:
        if (app.company_name or "").strip().lower() == wanted:
            return app.id
    return None

def containment_match(candidate: str, applications: Iterable[Application]) -> Optional[str]:
    wanted = normalize_company(candidate)
    if not wanted:
        return None
    for app in applications:
        stored = normalize_company(app.company_name)
        # an empty name is contained in everything
        if stored and (stored in wanted or wanted in stored):
            return app.id
    return None

class ApplicationMatcher:
    """Finds the stored application an extracted company name refers to.

    Exact case-insensitive equality is tried over all applications before any
    substring containment; within each step the first application in listing
    order wins.
    """

    def __init__(self, applications: Iterable[Application]):
        self.applications: List[Application] = list(applications)

    @classmethod
    def for_owner(cls, store, owner_id: str) -> "ApplicationMatcher":
        return cls(store.list_applications(owner_id))

    def match(self, candidate: Optional[str]) -> Optional[str]:
        if not candidate:
            return None
        return exact_match(candidate, self.applications) or containment_match(candidate, self.applications)
