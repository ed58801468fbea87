"""
LLM calls: job-description parsing, fit scoring and search-strategy insights.

Every call asks for a bare JSON object. Model output is treated as untrusted:
it is sanitized, unwrapped from a Markdown fence if the model added one, and
rejected with the raw text attached when it is not a JSON object.
"""

import json
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import anthropic
from dotenv import load_dotenv
from loguru import logger

from .documents import sanitize_object, sanitize_text
from .errors import OracleRequestError, OracleResponseError

load_dotenv()

DEFAULT_MODEL = "claude-3-haiku-20240307"
DEFAULT_INSIGHTS_MODEL = "claude-sonnet-4-20250514"

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

PARSE_PROMPT = """You are parsing a job description document to extract structured data.

Read the job description and extract company name, job title, salary and location
from the document itself. For company background (size, revenue, industry, type,
stock ticker) use what you know about the company; use null when unsure.

Return ONLY a JSON object with these keys:

{
  "company_name": "company name as written in the posting",
  "company_summary": "two sentences on what the company does, or null",
  "job_title": "exact job title from the posting",
  "salary_min": "integer or null, e.g. 300000",
  "salary_max": "integer or null",
  "location": "job location or null",
  "company_size": "one of '1-50', '51-200', '201-500', '501-1000', '1001-5000', '5001-10000', '10000+', or null",
  "annual_revenue": "e.g. '$1.2B', or null",
  "industry": "primary industry or null",
  "company_type": "one of 'public', 'private', 'startup', 'nonprofit', or null",
  "stock_ticker": "ticker if public, else null"
}

Convert salary ranges like "$300,000 - $400,000" to integers (300000, 400000).

Job Description Document:
---
{document}
---"""

SCORE_PROMPT = """You are evaluating how well a candidate fits a job. Return ONLY valid JSON.

CANDIDATE RESUME:
{resume}

JOB DESCRIPTION:
{job}

Return:
{{
  "fit_score": <integer 0-100>,
  "strengths": ["<specific reason the role matches the candidate>", "..."],
  "gaps": ["<missing qualification or concern>", "..."],
  "recommendation": "<one of: 'pursue aggressively', 'strong fit', 'worth pursuing', 'proceed with caution', 'likely not a fit'>",
  "talking_points": ["<achievement from the resume to highlight for this role>", "..."],
  "interview_questions_to_prepare": ["<likely question based on the gaps>", "..."]
}}

Scoring: 90-100 perfect match, 80-89 strong fit, 70-79 good fit,
60-69 moderate fit, below 60 significant gaps."""

INSIGHTS_PROMPT = """You are a career advisor analyzing a job search campaign.

CURRENT DATA:
{metrics}

CANDIDATE CONTEXT:
{context}

Generate strategic insights and return ONLY valid JSON:

{{
  "executive_summary": "2-3 sentences on search health and urgency",
  "pipeline_health": {{
    "status": "healthy | at_risk | critical",
    "explanation": "why",
    "probability_of_offer_by_deadline": "percentage as string",
    "applications_needed_per_week": 5
  }},
  "whats_working": ["..."],
  "whats_not_working": ["..."],
  "immediate_actions": [{{"action": "...", "rationale": "...", "priority": "critical | high | medium", "effort": "15min | 1hour | half-day | ongoing"}}],
  "follow_up_priorities": [{{"company": "...", "current_status": "...", "days_since_update": 14, "recommended_action": "...", "urgency": "immediate | this_week | next_week"}}],
  "companies_to_target": [{{"company": "...", "why_good_fit": "...", "likely_roles": ["..."], "approach": "..."}}],
  "weekly_targets": {{"new_applications": 10, "follow_ups": 5, "networking_conversations": 3}},
  "risk_alerts": [{{"risk": "...", "mitigation": "..."}}]
}}

Be direct, actionable and data-driven."""


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse model output into a dict.

    Raises:
        OracleResponseError: If the text is not a JSON object
    """
    cleaned = sanitize_text(text or "")
    fenced = _FENCE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        raise OracleResponseError("Invalid JSON response from AI", cleaned)
    if not isinstance(parsed, dict):
        raise OracleResponseError("Invalid JSON response from AI", cleaned)
    return sanitize_object(parsed)


class JobOracle:
    """
    Anthropic-backed implementation of the three LLM calls.

    Args:
        client: An anthropic.Anthropic client (built from ANTHROPIC_API_KEY when omitted)
        llm_cfg: The `llm` config block (model names, token limits, candidate profile)
    """

    def __init__(self, client=None, llm_cfg: Optional[Dict[str, Any]] = None):
        self.cfg = llm_cfg or {}
        self.client = client or anthropic.Anthropic(api_key=os.getenv("ANTHROPIC_API_KEY"))
        self.model = self.cfg.get("model", DEFAULT_MODEL)
        self.insights_model = self.cfg.get("insights_model", DEFAULT_INSIGHTS_MODEL)

    def _ask(self, prompt: str, model: str, max_tokens: int, what: str) -> Dict[str, Any]:
        try:
            response = self.client.messages.create(
                model=model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(f"[LLM] {what} failed: {e}")
            raise OracleRequestError(f"Failed to {what}", str(e)) from e

        text_block = next((b for b in response.content if getattr(b, "type", None) == "text"), None)
        if text_block is None:
            raise OracleResponseError("No text content in AI response", "")
        try:
            return parse_json_object(text_block.text)
        except OracleResponseError:
            logger.error(f"[LLM] {what}: unparseable response {text_block.text[:300]!r}")
            raise

    def parse_job_description(self, document_text: str, file_id: Optional[str] = None,
                              file_name: Optional[str] = None) -> Dict[str, Any]:
        text = sanitize_text(document_text)
        parsed = self._ask(
            PARSE_PROMPT.replace("{document}", text),
            self.model, int(self.cfg.get("parse_max_tokens", 4096)), "parse job description",
        )
        parsed.update({
            "job_description_text": text,
            "google_drive_file_id": file_id,
            "source_file": file_name,
            "parsed_at": datetime.now(timezone.utc).isoformat(),
        })
        return parsed

    def candidate_resume(self) -> str:
        path = self.cfg.get("resume_path")
        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        return self.cfg.get("candidate_profile", "")

    def score_fit(self, job_text: str, resume_text: Optional[str] = None) -> Dict[str, Any]:
        prompt = SCORE_PROMPT.format(resume=resume_text or self.candidate_resume(), job=job_text)
        return self._ask(prompt, self.model, int(self.cfg.get("score_max_tokens", 3000)), "score fit")

    def generate_insights(self, metrics: Dict[str, Any]) -> Dict[str, Any]:
        prompt = INSIGHTS_PROMPT.format(
            metrics=json.dumps(metrics, indent=2, default=str),
            context=self.cfg.get("candidate_profile", "") or "(no profile configured)",
        )
        return self._ask(prompt, self.insights_model, int(self.cfg.get("insights_max_tokens", 4000)),
                         "generate insights")
