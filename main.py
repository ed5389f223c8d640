from __future__ import annotations

import argparse
import dataclasses
import logging
import shlex
import sys
from pathlib import Path

from gmail_line_relay import config
from gmail_line_relay.gmail_client import GmailMailbox, load_credentials
from gmail_line_relay.google_sheets import GoogleSheetStore
from gmail_line_relay.line_client import LineClient
from gmail_line_relay.orchestrator import RunFailed, run
from gmail_line_relay.sheet_config import NoValidConfiguration, initialize_sheet
from gmail_line_relay.trigger import CrontabTriggerRegistry, ensure_hourly_trigger


def _run_command_line(settings: config.Settings) -> str:
    # cron starts jobs with an empty environment; carry the settings on the line.
    root = Path(__file__).resolve().parent
    env = {
        "SPREADSHEET_ID": settings.spreadsheet_id,
        "SHEET_NAME": settings.sheet_name,
        "GOOGLE_CREDENTIALS_FILE": str(settings.credentials_file.resolve()),
        "GOOGLE_TOKEN_FILE": str(settings.token_file.resolve()),
    }
    prefix = " ".join(f"{key}={shlex.quote(value)}" for key, value in env.items())
    return f"cd {shlex.quote(str(root))} && {prefix} {shlex.quote(sys.executable)} main.py run"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Forward unread Gmail messages to LINE.")
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "init-sheet", "install-trigger"],
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    try:
        settings = config.Settings.from_env()
    except ValueError as exc:
        logging.error("Missing configuration: %s", exc)
        return 1
    relay_config = dataclasses.replace(config.RelayConfig(), sheet_name=settings.sheet_name)

    if args.command == "install-trigger":
        try:
            registry = CrontabTriggerRegistry(_run_command_line(settings))
            created = ensure_hourly_trigger(registry, relay_config)
        except (RuntimeError, OSError, ValueError) as exc:
            logging.error("Failed to install trigger: %s", exc)
            return 1
        logging.info("Trigger %s.", "installed" if created else "already present")
        return 0

    try:
        creds = load_credentials(settings.credentials_file, settings.token_file, config.SCOPES)
        store = GoogleSheetStore(creds, settings.spreadsheet_id, settings.sheet_name)
    except Exception as exc:  # noqa: BLE001
        logging.exception("Failed to connect to Google APIs: %s", exc)
        return 1

    if args.command == "init-sheet":
        try:
            initialize_sheet(store, relay_config)
        except Exception as exc:  # noqa: BLE001
            logging.exception("Sheet initialization failed: %s", exc)
            return 1
        return 0

    try:
        mailbox = GmailMailbox(creds)
    except Exception as exc:  # noqa: BLE001
        logging.exception("Failed to connect to Gmail: %s", exc)
        return 1
    sender = LineClient(relay_config)
    try:
        summary = run(store, mailbox, sender, relay_config)
    except NoValidConfiguration as exc:
        logging.error("No valid configuration: %s", exc)
        return 1
    except RunFailed as exc:
        logging.exception("Run failed: %s", exc)
        return 1
    finally:
        sender.close()

    logging.info("Sent %s message(s) with %s error(s).", summary.sent, summary.errors)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
