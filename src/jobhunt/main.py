import argparse
import json
import os
import sys
from datetime import datetime, timezone

from loguru import logger

from .credentials import SyncStateRepository, authorize_account, refresh_access_token, renew
from .drive_client import get_drive_service
from .errors import JobHuntError, SyncNotConfiguredError
from .importer import import_drive_folder
from .oracle import JobOracle
from .settings import Settings, load_settings
from .sheets_store import SheetsStore
from .sync import SyncJob

CLIENT_SECRET_FILE = os.path.join(os.path.dirname(os.path.dirname(__file__)), "..", "credentials", "client_secret.json")

def configure_logging(cfg: Settings) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(cfg.app.get("log_level", "INFO")).upper())

def _store(cfg: Settings) -> SheetsStore:
    return SheetsStore.open(cfg.sheets.get("spreadsheet_name", "Job Hunt Tracker"))

def cmd_serve(cfg: Settings, args) -> int:
    from .api import create_app
    create_app(cfg).run(host=args.host, port=args.port)
    return 0

def cmd_sync(cfg: Settings, args) -> int:
    result = SyncJob(cfg, _store(cfg), SyncStateRepository()).run(args.owner)
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1

def cmd_connect(cfg: Settings, args) -> int:
    repo = SyncStateRepository()
    state = authorize_account(args.owner, args.client_secret)
    repo.save(state)
    print(f"[CONNECT] Gmail sync enabled for {args.owner}")
    return 0

def cmd_import(cfg: Settings, args) -> int:
    folder_id = args.folder or cfg.drive.get("folder_id")
    if not folder_id:
        print("No Drive folder given (use --folder or drive.folder_id)", file=sys.stderr)
        return 2
    repo = SyncStateRepository()
    state = repo.load(args.owner)
    if state is None:
        raise SyncNotConfiguredError("Google account not connected")
    now = datetime.now(timezone.utc)
    if state.is_expired(now):
        state = renew(repo, state, lambda t: refresh_access_token(t, cfg), now)
    progress = import_drive_folder(
        args.owner, folder_id, get_drive_service(state.access_token),
        JobOracle(llm_cfg=cfg.llm), _store(cfg), now,
    )
    print(json.dumps(progress.to_dict(), indent=2))
    return 0 if not progress.errors else 1

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Job hunt tracker: Gmail sync, Drive import, fit scoring")
    parser.add_argument("--config", help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the JSON API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    sync = sub.add_parser("sync", help="Run one Gmail sync and print the result")
    sync.add_argument("--owner", required=True)
    sync.set_defaults(func=cmd_sync)

    connect = sub.add_parser("connect", help="Connect a Google account for Gmail sync")
    connect.add_argument("--owner", required=True)
    connect.add_argument("--client-secret", default=CLIENT_SECRET_FILE)
    connect.set_defaults(func=cmd_connect)

    imp = sub.add_parser("import", help="Import job descriptions from a Drive folder")
    imp.add_argument("--owner", required=True)
    imp.add_argument("--folder", help="Drive folder id (defaults to drive.folder_id)")
    imp.set_defaults(func=cmd_import)

    args = parser.parse_args(argv)
    cfg = load_settings(args.config)
    configure_logging(cfg)
    try:
        return args.func(cfg, args)
    except JobHuntError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
