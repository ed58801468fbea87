import os, json, yaml
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import dateparser
import pytz
from dotenv import load_dotenv

CONFIG_PATH = os.environ.get(
    "JOBHUNT_CONFIG",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "..", "config.yaml")
)
STATE_PATH = os.environ.get(
    "JOBHUNT_STATE",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "..", "data", "state.json")
)

load_dotenv()

@dataclass
class Settings:
    app: Dict[str, Any] = field(default_factory=dict)
    gmail: Dict[str, Any] = field(default_factory=dict)
    sheets: Dict[str, Any] = field(default_factory=dict)
    drive: Dict[str, Any] = field(default_factory=dict)
    llm: Dict[str, Any] = field(default_factory=dict)
    insights: Dict[str, Any] = field(default_factory=dict)
    google_client_id: Optional[str] = field(default_factory=lambda: os.environ.get("GOOGLE_CLIENT_ID"))
    google_client_secret: Optional[str] = field(default_factory=lambda: os.environ.get("GOOGLE_CLIENT_SECRET"))

    @property
    def timezone(self):
        return pytz.timezone(self.app.get("timezone", "UTC"))

    def target_deadline(self) -> Optional[datetime]:
        raw = self.insights.get("target_deadline")
        if not raw:
            return None
        parsed = dateparser.parse(str(raw), settings={"TIMEZONE": "UTC", "RETURN_AS_TIMEZONE_AWARE": True})
        if parsed is None:
            raise ValueError(f"Unparseable insights.target_deadline: {raw!r}")
        return parsed

def load_settings(path: Optional[str] = None) -> Settings:
    with open(path or CONFIG_PATH, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    # optional blocks may be missing or empty in the file
    for block in ("app", "gmail", "sheets", "drive", "llm", "insights"):
        cfg[block] = cfg.get(block) or {}
    return Settings(**cfg)

def load_state(path: Optional[str] = None) -> dict:
    path = path or STATE_PATH
    if not os.path.exists(path):
        return {"owners": {}}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

def save_state(state: dict, path: Optional[str] = None) -> None:
    path = path or STATE_PATH
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2)
