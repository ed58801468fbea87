from datetime import datetime, timezone, timedelta

from jobhunt.credentials import SyncStateRepository
from jobhunt.models import SyncCredentialState
from jobhunt.settings import Settings, load_settings

def test_load_settings_fills_missing_blocks(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("app:\n  timezone: Europe/Berlin\ngmail:\n  page_size: 100\nllm:\n", encoding="utf-8")
    cfg = load_settings(str(path))
    assert cfg.gmail["page_size"] == 100
    assert cfg.llm == {} and cfg.drive == {}
    assert cfg.timezone.zone == "Europe/Berlin"

def test_target_deadline_parsed():
    deadline = Settings(insights={"target_deadline": "Feb 1, 2026"}).target_deadline()
    assert deadline.date().isoformat() == "2026-02-01"
    assert Settings().target_deadline() is None

def test_sync_state_roundtrip(tmp_path):
    repo = SyncStateRepository(str(tmp_path / "nested" / "state.json"))
    assert repo.load("owner-1") is None
    expiry = datetime(2025, 1, 1, tzinfo=timezone.utc)
    saved = repo.save(SyncCredentialState("owner-1", "a", "r", expiry))
    assert saved.version == 1
    loaded = repo.load("owner-1")
    assert loaded == saved
    assert loaded.is_expired(expiry + timedelta(seconds=1))
    assert repo.save(loaded).version == 2
