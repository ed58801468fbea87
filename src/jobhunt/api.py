import base64
import binascii
from datetime import datetime, timezone
from typing import Callable, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from loguru import logger
from werkzeug.exceptions import HTTPException

from .credentials import SyncStateRepository, refresh_access_token, renew
from .documents import extract_docx_text
from .drive_client import get_drive_service
from .errors import BadRequestError, JobHuntError, NotFoundError, SyncNotConfiguredError, UnauthorizedError
from .importer import import_drive_folder, score_application
from .insights import generate_insights
from .oracle import JobOracle
from .settings import Settings, load_settings
from .sheets_store import SheetsStore
from .sync import SyncJob


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Services:
    """Collaborators for the request handlers, built lazily so tests can inject fakes."""

    def __init__(self, settings: Settings, store=None, sync_states: Optional[SyncStateRepository] = None,
                 oracle=None, sync_job_factory: Optional[Callable[..., SyncJob]] = None,
                 drive_service_factory=None, clock: Callable[[], datetime] = _utcnow):
        self.settings = settings
        self._store = store
        self.sync_states = sync_states or SyncStateRepository()
        self._oracle = oracle
        self.sync_job_factory = sync_job_factory or SyncJob
        self.drive_service_factory = drive_service_factory or get_drive_service
        self.clock = clock

    @property
    def store(self):
        if self._store is None:
            self._store = SheetsStore.open(self.settings.sheets.get("spreadsheet_name", "Job Hunt Tracker"))
        return self._store

    @property
    def oracle(self):
        if self._oracle is None:
            self._oracle = JobOracle(llm_cfg=self.settings.llm)
        return self._oracle


def create_app(settings: Optional[Settings] = None, **overrides) -> Flask:
    settings = settings or load_settings()
    services = Services(settings, **overrides)
    app = Flask(__name__)
    CORS(app)
    app.extensions["jobhunt"] = services

    def current_owner() -> str:
        header = request.headers.get("Authorization")
        if not header:
            raise UnauthorizedError("Missing authorization header")
        token = header.replace("Bearer ", "", 1).strip()
        owner = (settings.app.get("api_tokens") or {}).get(token)
        if not owner:
            raise UnauthorizedError("Invalid authorization token")
        return owner

    def json_body() -> dict:
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}

    @app.errorhandler(JobHuntError)
    def handle_known(e: JobHuntError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        logger.exception(f"[API] Unhandled error on {request.path}")
        return jsonify({"error": str(e)}), 500

    @app.post("/gmail-sync")
    def gmail_sync():
        owner = current_owner()
        job = services.sync_job_factory(settings, services.store, services.sync_states)
        result = job.run(owner)
        return jsonify(result.to_dict())

    @app.post("/parse-jd")
    def parse_jd():
        current_owner()
        body = json_body()
        text = body.get("documentText")
        if not text:
            raise BadRequestError("documentText is required")
        if body.get("isDocx"):
            try:
                text = extract_docx_text(base64.b64decode(text))
            except (binascii.Error, ValueError) as e:
                raise BadRequestError("documentText is not valid base64", str(e)) from e
        parsed = services.oracle.parse_job_description(text, body.get("fileId"), body.get("fileName"))
        return jsonify(parsed)

    @app.post("/score-fit")
    def score_fit():
        owner = current_owner()
        body = json_body()
        application_id = body.get("applicationId")
        job_text = body.get("jobDescriptionText")
        if not application_id or not job_text:
            raise BadRequestError("applicationId and jobDescriptionText are required")
        application = services.store.get_application(application_id)
        if application is None or application.owner_id != owner:
            raise NotFoundError("Application not found")
        analysis = score_application(services.store, services.oracle, application, job_text,
                                     services.clock(), body.get("resumeText"))
        return jsonify({"success": True, "fitAnalysis": analysis})

    @app.post("/generate-insights")
    def insights():
        owner = current_owner()
        return jsonify(generate_insights(services.store, services.oracle, owner, settings, services.clock()))

    @app.get("/insights/latest")
    def latest_insight():
        owner = current_owner()
        insight = services.store.latest_insight(owner)
        if insight is None:
            raise NotFoundError("No insights generated yet")
        return jsonify({"success": True, "insight": insight.to_dict()})

    @app.post("/drive-import")
    def drive_import():
        owner = current_owner()
        folder_id = json_body().get("folderId") or settings.drive.get("folder_id")
        if not folder_id:
            raise BadRequestError("folderId is required")
        state = services.sync_states.load(owner)
        if state is None:
            raise SyncNotConfiguredError("Google account not connected")
        now = services.clock()
        if state.is_expired(now):
            state = renew(services.sync_states, state, lambda t: refresh_access_token(t, settings), now)
        progress = import_drive_folder(
            owner, folder_id, services.drive_service_factory(state.access_token),
            services.oracle, services.store, now,
        )
        return jsonify({"success": True, **progress.to_dict()})

    return app
