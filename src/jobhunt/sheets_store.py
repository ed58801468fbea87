import functools
import os, json, uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Set

import gspread
from gspread.utils import rowcol_to_a1
from loguru import logger

from .errors import NotFoundError, StoreError
from .models import (
    Application, ApplicationStatus, ChangeSource, Insight, StatusHistoryEntry, UnmatchedNotification,
)

APPLICATION_HEADERS = [
    "Id", "Owner", "Company", "Title", "Status", "Status Updated", "Updated", "Date Applied",
    "Location", "Salary Min", "Salary Max", "Company Summary", "Industry", "Company Size",
    "Company Type", "Stock Ticker", "Fit Score", "Fit Analysis", "Drive File Id", "Job Description",
]
HISTORY_HEADERS = ["Application", "Owner", "Previous", "New", "Source", "Changed At", "Message Id", "Notes"]
UNMATCHED_HEADERS = [
    "Owner", "Message Id", "Thread Id", "Subject", "Sender Email", "Sender Name", "Snippet",
    "Label", "Suggested Status", "Received At",
]
INSIGHT_HEADERS = ["Id", "Owner", "Type", "Title", "Generated At", "Content"]

def _get_client():
    sa_path = os.getenv("GSPREAD_SERVICE_ACCOUNT_JSON", "").strip()
    if sa_path:
        return gspread.service_account(filename=sa_path)
    return gspread.oauth(
        credentials_filename=os.path.join(os.path.dirname(os.path.dirname(__file__)), "..", "credentials", "client_secret.json"),
        authorized_user_filename=os.path.join(os.path.dirname(os.path.dirname(__file__)), "..", "credentials", "sheets_token.json"),
    )

def ensure_worksheet(sh, title: str, headers: List[str]):
    try:
        ws = sh.worksheet(title)
    except gspread.WorksheetNotFound:
        ws = sh.add_worksheet(title=title, rows=1000, cols=len(headers))
        ws.append_row(headers)
        return ws
    first_row = ws.row_values(1)
    if first_row != headers:
        if not first_row:
            ws.append_row(headers)
        else:
            ws.delete_rows(1)
            ws.insert_row(headers, index=1)
    return ws

def _sheets_call(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except gspread.exceptions.APIError as e:
            raise StoreError(f"Google Sheets request failed in {fn.__name__}", str(e)) from e
    return wrapper

def _iso(value) -> str:
    return value.isoformat() if value else ""

def _dt(value) -> Optional[datetime]:
    return datetime.fromisoformat(str(value)) if value not in (None, "") else None

def _int(value) -> Optional[int]:
    return int(value) if value not in (None, "") else None

def _text(value) -> Optional[str]:
    return str(value) if value not in (None, "") else None

def application_to_row(app: Application) -> List[Any]:
    return [
        app.id, app.owner_id, app.company_name, app.job_title, app.status.value,
        _iso(app.status_updated_at), _iso(app.updated_at), _iso(app.application_date),
        app.location or "", "" if app.salary_min is None else app.salary_min,
        "" if app.salary_max is None else app.salary_max, app.company_summary or "",
        app.industry or "", app.company_size or "", app.company_type or "", app.stock_ticker or "",
        "" if app.fit_score is None else app.fit_score,
        json.dumps(app.fit_analysis) if app.fit_analysis else "",
        app.google_drive_file_id or "", app.job_description_text or "",
    ]

def row_to_application(row: Dict[str, Any]) -> Application:
    applied = row.get("Date Applied")
    return Application(
        id=str(row["Id"]),
        owner_id=str(row["Owner"]),
        company_name=str(row.get("Company", "")),
        job_title=str(row.get("Title", "")),
        status=ApplicationStatus(row["Status"]),
        status_updated_at=_dt(row.get("Status Updated")),
        updated_at=_dt(row.get("Updated")),
        application_date=date.fromisoformat(str(applied)) if applied else None,
        location=_text(row.get("Location")),
        salary_min=_int(row.get("Salary Min")),
        salary_max=_int(row.get("Salary Max")),
        company_summary=_text(row.get("Company Summary")),
        industry=_text(row.get("Industry")),
        company_size=_text(row.get("Company Size")),
        company_type=_text(row.get("Company Type")),
        stock_ticker=_text(row.get("Stock Ticker")),
        fit_score=_int(row.get("Fit Score")),
        fit_analysis=json.loads(row["Fit Analysis"]) if row.get("Fit Analysis") else None,
        google_drive_file_id=_text(row.get("Drive File Id")),
        job_description_text=_text(row.get("Job Description")),
    )

def history_to_row(entry: StatusHistoryEntry) -> List[Any]:
    return [
        entry.application_id, entry.owner_id,
        entry.previous_status.value if entry.previous_status else "",
        entry.new_status.value, entry.source.value, _iso(entry.changed_at),
        entry.message_id or "", entry.note,
    ]

def row_to_history(row: Dict[str, Any]) -> StatusHistoryEntry:
    return StatusHistoryEntry(
        application_id=str(row["Application"]),
        owner_id=str(row["Owner"]),
        previous_status=ApplicationStatus(row["Previous"]) if row.get("Previous") else None,
        new_status=ApplicationStatus(row["New"]),
        source=ChangeSource(row["Source"]),
        changed_at=_dt(row["Changed At"]),
        message_id=_text(row.get("Message Id")),
        note=str(row.get("Notes", "")),
    )

def unmatched_to_row(n: UnmatchedNotification) -> List[Any]:
    return [
        n.owner_id, n.message_id, n.thread_id, n.subject, n.sender_email, n.sender_name,
        n.snippet, n.label_name, n.suggested_status.value, _iso(n.received_at),
    ]

def insight_to_row(insight: Insight) -> List[Any]:
    return [
        insight.id, insight.owner_id, insight.insight_type, insight.title,
        _iso(insight.generated_at), json.dumps(insight.content),
    ]

def row_to_insight(row: Dict[str, Any]) -> Insight:
    return Insight(
        id=str(row["Id"]),
        owner_id=str(row["Owner"]),
        insight_type=str(row.get("Type", "")),
        title=str(row.get("Title", "")),
        generated_at=_dt(row["Generated At"]),
        content=json.loads(row["Content"]) if row.get("Content") else {},
    )

class SheetsStore:
    """Applications, their status history, unmatched mail and saved insights, kept in one spreadsheet."""

    def __init__(self, applications_ws, history_ws, unmatched_ws, insights_ws):
        self.applications_ws = applications_ws
        self.history_ws = history_ws
        self.unmatched_ws = unmatched_ws
        self.insights_ws = insights_ws

    @classmethod
    def open(cls, spreadsheet_name: str) -> "SheetsStore":
        gc = _get_client()
        try:
            sh = gc.open(spreadsheet_name)
        except gspread.SpreadsheetNotFound:
            sh = gc.create(spreadsheet_name)
        return cls(
            ensure_worksheet(sh, "Applications", APPLICATION_HEADERS),
            ensure_worksheet(sh, "Status History", HISTORY_HEADERS),
            ensure_worksheet(sh, "Unmatched Emails", UNMATCHED_HEADERS),
            ensure_worksheet(sh, "Insights", INSIGHT_HEADERS),
        )

    def _records(self, ws) -> List[Dict[str, Any]]:
        # numericise_ignore keeps ids and free text as strings
        return ws.get_all_records(numericise_ignore=["all"])

    @_sheets_call
    def list_applications(self, owner_id: str) -> List[Application]:
        return [row_to_application(r) for r in self._records(self.applications_ws) if str(r["Owner"]) == owner_id]

    @_sheets_call
    def get_application(self, application_id: str) -> Optional[Application]:
        for r in self._records(self.applications_ws):
            if str(r["Id"]) == application_id:
                return row_to_application(r)
        return None

    @_sheets_call
    def add_application(self, app: Application) -> Application:
        if not app.id:
            app.id = uuid.uuid4().hex
        self.applications_ws.append_row(application_to_row(app))
        logger.info(f"[Sheets] Added application {app.company_name} | {app.job_title}")
        return app

    @_sheets_call
    def save_application(self, app: Application) -> None:
        cell = self.applications_ws.find(app.id, in_column=1)
        if cell is None:
            raise NotFoundError(f"Application {app.id} not found")
        r = cell.row
        self.applications_ws.update(
            range_name=f"A{r}:{rowcol_to_a1(r, len(APPLICATION_HEADERS))}",
            values=[application_to_row(app)],
        )

    @_sheets_call
    def set_status(self, application_id: str, status: ApplicationStatus, changed_at: datetime) -> None:
        app = self.get_application(application_id)
        if app is None:
            raise NotFoundError(f"Application {application_id} not found")
        app.status = status
        app.status_updated_at = changed_at
        app.updated_at = changed_at
        self.save_application(app)

    @_sheets_call
    def update_fit(self, application_id: str, fit_score: Optional[int], fit_analysis: Dict[str, Any],
                   updated_at: datetime) -> Application:
        app = self.get_application(application_id)
        if app is None:
            raise NotFoundError(f"Application {application_id} not found")
        app.fit_score = fit_score
        app.fit_analysis = fit_analysis
        app.updated_at = updated_at
        self.save_application(app)
        return app

    @_sheets_call
    def append_history(self, entry: StatusHistoryEntry) -> None:
        self.history_ws.append_row(history_to_row(entry))

    @_sheets_call
    def list_history(self, owner_id: str) -> List[StatusHistoryEntry]:
        return [row_to_history(r) for r in self._records(self.history_ws) if str(r["Owner"]) == owner_id]

    @_sheets_call
    def add_unmatched(self, notification: UnmatchedNotification) -> bool:
        """Returns False if this message was already recorded for the owner."""
        for r in self._records(self.unmatched_ws):
            if str(r["Owner"]) == notification.owner_id and str(r["Message Id"]) == notification.message_id:
                return False
        self.unmatched_ws.append_row(unmatched_to_row(notification))
        return True

    @_sheets_call
    def drive_file_ids(self, owner_id: str) -> Set[str]:
        return {
            str(r["Drive File Id"]) for r in self._records(self.applications_ws)
            if str(r["Owner"]) == owner_id and r.get("Drive File Id")
        }

    @_sheets_call
    def add_insight(self, insight: Insight) -> Insight:
        if not insight.id:
            insight.id = uuid.uuid4().hex
        self.insights_ws.append_row(insight_to_row(insight))
        return insight

    @_sheets_call
    def latest_insight(self, owner_id: str) -> Optional[Insight]:
        mine = [row_to_insight(r) for r in self._records(self.insights_ws) if str(r["Owner"]) == owner_id]
        return max(mine, key=lambda i: i.generated_at) if mine else None
