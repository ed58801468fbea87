import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger

from .drive_client import download_text, list_drive_files
from .errors import JobHuntError
from .models import Application, ApplicationStatus, ChangeSource, ImportProgress, StatusHistoryEntry

def _salary(value) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None

def application_from_parsed(owner_id: str, parsed: Dict[str, Any], now: datetime) -> Application:
    return Application(
        id="",
        owner_id=owner_id,
        company_name=parsed.get("company_name") or "Unknown",
        job_title=parsed.get("job_title") or "",
        status=ApplicationStatus.APPLIED,
        status_updated_at=now,
        updated_at=now,
        application_date=now.date(),
        location=parsed.get("location"),
        salary_min=_salary(parsed.get("salary_min")),
        salary_max=_salary(parsed.get("salary_max")),
        company_summary=parsed.get("company_summary"),
        industry=parsed.get("industry"),
        company_size=parsed.get("company_size"),
        company_type=parsed.get("company_type"),
        stock_ticker=parsed.get("stock_ticker"),
        google_drive_file_id=parsed.get("google_drive_file_id"),
        job_description_text=parsed.get("job_description_text"),
    )

def score_application(store, oracle, app: Application, job_text: str, now: datetime,
                      resume_text: Optional[str] = None) -> Dict[str, Any]:
    analysis = oracle.score_fit(job_text, resume_text)
    score = analysis.get("fit_score")
    store.update_fit(app.id, int(score) if isinstance(score, (int, float)) else None, analysis, now)
    return analysis

def _record_failure(progress: ImportProgress, file, step: str, error: Exception) -> None:
    if isinstance(error, JobHuntError):
        message = error.message
        logger.warning(f"[Drive] {step} of {file.name} failed: {message}")
    else:
        # store and transport errors from the client libraries; the batch still goes on
        message = f"{type(error).__name__}: {error}"
        logger.opt(exception=error).error(f"[Drive] {step} of {file.name} failed: {message}")
    progress.errors += 1
    progress.failures[file.name] = message

def import_drive_folder(owner_id: str, folder_id: str, drive_service, oracle, store,
                        now: datetime) -> ImportProgress:
    """Create an application for every job description in a Drive folder not seen before."""
    files = list_drive_files(drive_service, folder_id)
    known = store.drive_file_ids(owner_id)
    progress = ImportProgress(total=len(files))

    for file in files:
        if file.id in known:
            progress.skipped += 1
            continue
        try:
            text = download_text(drive_service, file)
            parsed = oracle.parse_job_description(text, file.id, file.name)
            app = application_from_parsed(owner_id, parsed, now)
            app.id = uuid.uuid4().hex
            # history goes in first so every stored application has its IMPORT entry
            store.append_history(StatusHistoryEntry(
                application_id=app.id,
                owner_id=owner_id,
                previous_status=None,
                new_status=app.status,
                source=ChangeSource.IMPORT,
                changed_at=now,
                note=f"Imported from Drive file: {file.name}",
            ))
            store.add_application(app)
        except Exception as e:
            _record_failure(progress, file, "Import", e)
            continue
        progress.imported += 1

        try:
            score_application(store, oracle, app, parsed["job_description_text"], now)
        except Exception as e:
            _record_failure(progress, file, "Fit scoring", e)

    logger.info(f"[Drive] Imported {progress.imported}/{progress.total} ({progress.skipped} skipped, {progress.errors} errors)")
    return progress
