import io

import docx
import pytest

from jobhunt.documents import extract_docx_text, sanitize_object, sanitize_text
from jobhunt.errors import DocumentError

def test_sanitize_keeps_newlines():
    assert sanitize_text("  a\x00b\n\tc\x1f ") == "ab\n\tc"

def test_sanitize_nested():
    assert sanitize_object({"a": ["x\x00", 3], "b": None}) == {"a": ["x", 3], "b": None}

def test_docx_text():
    document = docx.Document()
    document.add_paragraph("Senior Director, Sales")
    document.add_paragraph("Acme Corp, New York")
    buf = io.BytesIO()
    document.save(buf)
    assert extract_docx_text(buf.getvalue()) == "Senior Director, Sales\nAcme Corp, New York"

def test_docx_garbage():
    with pytest.raises(DocumentError):
        extract_docx_text(b"not a zip file")
