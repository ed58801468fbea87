from typing import List

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from .documents import extract_docx_text, extract_pdf_text
from .errors import DocumentError, JobHuntError
from .models import DriveFile

GOOGLE_DOC = "application/vnd.google-apps.document"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF = "application/pdf"

def get_drive_service(access_token: str):
    return build("drive", "v3", credentials=Credentials(token=access_token), cache_discovery=False)

def list_drive_files(service, folder_id: str) -> List[DriveFile]:
    query = f"'{folder_id}' in parents and mimeType != 'application/vnd.google-apps.folder' and trashed = false"
    files: List[DriveFile] = []
    page_token = None
    while True:
        try:
            resp = service.files().list(
                q=query,
                fields="nextPageToken, files(id, name, mimeType, webViewLink, modifiedTime)",
                pageSize=1000,
                pageToken=page_token,
            ).execute()
        except HttpError as e:
            raise JobHuntError("Failed to fetch Drive files", str(e)) from e
        for f in resp.get("files", []):
            files.append(DriveFile(
                id=f["id"],
                name=f.get("name", ""),
                mime_type=f.get("mimeType", ""),
                web_view_link=f.get("webViewLink", ""),
                modified_time=f.get("modifiedTime", ""),
            ))
        page_token = resp.get("nextPageToken")
        if not page_token:
            return files

def download_text(service, file: DriveFile) -> str:
    """Fetch a file's content as plain text, converting by mime type."""
    try:
        if file.mime_type == GOOGLE_DOC:
            data = service.files().export(fileId=file.id, mimeType="text/plain").execute()
        else:
            data = service.files().get_media(fileId=file.id).execute()
    except HttpError as e:
        raise DocumentError(f"Failed to download {file.name}", str(e)) from e

    logger.debug(f"[Drive] Downloaded {file.name} ({file.mime_type}, {len(data)} bytes)")
    if file.mime_type == DOCX:
        return extract_docx_text(data)
    if file.mime_type == PDF:
        return extract_pdf_text(data)
    return data.decode("utf-8", errors="replace")
