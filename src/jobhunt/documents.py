import io, re
from typing import Any

import docx
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from .errors import DocumentError

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")

def sanitize_text(text: str) -> str:
    """Drop NUL and control characters (newlines and tabs survive)."""
    if not text:
        return text
    return _CONTROL_CHARS.sub("", text).strip()

def sanitize_object(obj: Any) -> Any:
    if isinstance(obj, str):
        return sanitize_text(obj)
    if isinstance(obj, list):
        return [sanitize_object(v) for v in obj]
    if isinstance(obj, dict):
        return {k: sanitize_object(v) for k, v in obj.items()}
    return obj

def extract_docx_text(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as e:
        # python-docx surfaces zip, xml and package errors alike
        raise DocumentError("Failed to extract text from .docx file", str(e)) from e
    return "\n".join(p.text for p in document.paragraphs)

def extract_pdf_text(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except PdfReadError as e:
        raise DocumentError("Failed to extract text from PDF file", str(e)) from e
