from types import SimpleNamespace

import anthropic
import httpx
import pytest

from jobhunt.errors import OracleRequestError, OracleResponseError
from jobhunt.oracle import JobOracle, parse_json_object

def test_parse_plain_json():
    assert parse_json_object('{"fit_score": 71}') == {"fit_score": 71}

def test_parse_fenced_json_and_sanitize():
    text = '```json\n{"company_name": "Acme\\u0000 Corp"}\n```'
    assert parse_json_object(text) == {"company_name": "Acme Corp"}

def test_malformed_json_keeps_raw_response():
    with pytest.raises(OracleResponseError) as exc:
        parse_json_object("Sure! Here is the analysis: fit is great")
    assert exc.value.to_dict() == {
        "error": "Invalid JSON response from AI",
        "rawResponse": "Sure! Here is the analysis: fit is great",
    }

def test_json_array_rejected():
    with pytest.raises(OracleResponseError):
        parse_json_object("[1, 2]")

def test_parse_job_description_adds_metadata(fake_anthropic):
    client = fake_anthropic('{"company_name": "Acme", "job_title": "VP Sales", "salary_min": 300000}')
    oracle = JobOracle(client=client, llm_cfg={"model": "test-model"})
    parsed = oracle.parse_job_description("VP Sales at Acme\x07", file_id="f1", file_name="acme.docx")
    assert parsed["company_name"] == "Acme"
    assert parsed["job_description_text"] == "VP Sales at Acme"
    assert parsed["google_drive_file_id"] == "f1"
    assert parsed["source_file"] == "acme.docx"
    assert "parsed_at" in parsed
    assert client.calls[0]["model"] == "test-model"
    assert "VP Sales at Acme" in client.calls[0]["messages"][0]["content"]

def test_score_fit_uses_configured_profile(fake_anthropic):
    client = fake_anthropic('{"fit_score": 88, "strengths": [], "gaps": []}')
    oracle = JobOracle(client=client, llm_cfg={"candidate_profile": "Twenty years in revenue operations"})
    assert oracle.score_fit("Head of RevOps")["fit_score"] == 88
    assert "Twenty years in revenue operations" in client.calls[0]["messages"][0]["content"]

def test_api_failure_is_request_error():
    def create(**kwargs):
        raise anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))

    client = SimpleNamespace(messages=SimpleNamespace(create=create))
    with pytest.raises(OracleRequestError):
        JobOracle(client=client).score_fit("job", "resume")
