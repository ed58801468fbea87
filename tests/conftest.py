import copy
from datetime import datetime, timezone, timedelta
from types import SimpleNamespace

import pytest

from jobhunt.credentials import SyncStateRepository
from jobhunt.errors import MessageFetchError
from jobhunt.models import Application, ApplicationStatus, InboxMessage, Label, SyncCredentialState

NOW = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)


class MemoryStore:
    def __init__(self, applications=()):
        self.applications = {a.id: a for a in applications}
        self.history = []
        self.unmatched = []
        self.insights = []
        self.status_writes = 0

    def list_applications(self, owner_id):
        return [copy.copy(a) for a in self.applications.values() if a.owner_id == owner_id]

    def get_application(self, application_id):
        app = self.applications.get(application_id)
        return copy.copy(app) if app else None

    def add_application(self, app):
        if not app.id:
            app.id = f"app-{len(self.applications) + 1}"
        self.applications[app.id] = copy.copy(app)
        return app

    def set_status(self, application_id, status, changed_at):
        app = self.applications[application_id]
        app.status = status
        app.status_updated_at = changed_at
        app.updated_at = changed_at
        self.status_writes += 1

    def update_fit(self, application_id, fit_score, fit_analysis, updated_at):
        app = self.applications[application_id]
        app.fit_score = fit_score
        app.fit_analysis = fit_analysis
        app.updated_at = updated_at
        return app

    def append_history(self, entry):
        self.history.append(entry)

    def list_history(self, owner_id):
        return [h for h in self.history if h.owner_id == owner_id]

    def add_unmatched(self, notification):
        if any(n.owner_id == notification.owner_id and n.message_id == notification.message_id
               for n in self.unmatched):
            return False
        self.unmatched.append(notification)
        return True

    def drive_file_ids(self, owner_id):
        return {a.google_drive_file_id for a in self.applications.values()
                if a.owner_id == owner_id and a.google_drive_file_id}

    def add_insight(self, insight):
        if not insight.id:
            insight.id = f"insight-{len(self.insights) + 1}"
        self.insights.append(insight)
        return insight

    def latest_insight(self, owner_id):
        mine = [i for i in self.insights if i.owner_id == owner_id]
        return max(mine, key=lambda i: i.generated_at) if mine else None


class FakeMailbox:
    def __init__(self, labels, messages=(), failing=()):
        self.labels = list(labels)
        self.messages = {m.id: m for m in messages}
        self.failing = set(failing)
        self.queries = []

    def list_labels(self):
        return list(self.labels)

    def list_message_ids(self, query):
        self.queries.append(query)
        return list(self.messages) + sorted(self.failing)

    def get_message(self, msg_id):
        if msg_id in self.failing:
            raise MessageFetchError(msg_id, "HttpError 500")
        return self.messages[msg_id]


class FakeOracle:
    def __init__(self, parsed=None, fit=None, insights=None):
        self.parsed = parsed or {"company_name": "Acme", "job_title": "Engineer"}
        self.fit = fit or {"fit_score": 82, "strengths": ["scale"], "gaps": [], "recommendation": "strong fit"}
        self.insights = insights or {"executive_summary": "ok"}
        self.calls = []

    def parse_job_description(self, text, file_id=None, file_name=None):
        self.calls.append(("parse", text))
        return dict(self.parsed, job_description_text=text, google_drive_file_id=file_id, source_file=file_name)

    def score_fit(self, job_text, resume_text=None):
        self.calls.append(("score", job_text))
        return dict(self.fit)

    def generate_insights(self, metrics):
        self.calls.append(("insights", metrics))
        return dict(self.insights)


def make_app(app_id, company, status=ApplicationStatus.APPLIED, owner="owner-1", **kwargs):
    return Application(id=app_id, owner_id=owner, company_name=company, job_title="Engineer",
                       status=status, **kwargs)


def make_message(msg_id, label_ids, subject="", sender="", sender_name="", minutes=0):
    return InboxMessage(
        id=msg_id,
        thread_id=f"t-{msg_id}",
        label_ids=list(label_ids),
        sender_name=sender_name,
        sender_email=sender,
        subject=subject,
        snippet=f"snippet {msg_id}",
        received_at=NOW - timedelta(days=1) + timedelta(minutes=minutes),
    )


LABELS = [
    Label("INBOX", "INBOX"),
    Label("L_APPLIED", "JH25 - Applied"),
    Label("L_INTERVIEWS", "JH25 - interviews"),
    Label("L_OFFER", "Inbox/JH25 - Offer"),
    Label("L_REJECTED", "JH25-Rejected"),
    Label("L_NET", "JH25 - Networking"),
]


@pytest.fixture
def labels():
    return list(LABELS)


@pytest.fixture
def store():
    return MemoryStore([make_app("app-acme", "Acme"), make_app("app-initech", "Initech")])


@pytest.fixture
def sync_states(tmp_path):
    repo = SyncStateRepository(str(tmp_path / "state.json"))
    repo.save(SyncCredentialState(
        owner_id="owner-1",
        access_token="access-1",
        refresh_token="refresh-1",
        token_expiry=NOW + timedelta(hours=1),
    ))
    return repo


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def fake_anthropic():
    def build(text):
        calls = []

        def create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])

        client = SimpleNamespace(messages=SimpleNamespace(create=create))
        client.calls = calls
        return client
    return build
