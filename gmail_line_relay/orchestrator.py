from __future__ import annotations

import logging
from typing import Protocol

from .config import RelayConfig
from .mail_fetcher import Mailbox, fetch_unread_messages
from .models import LabelConfig, RunSummary
from .sheet_config import NoValidConfiguration, TabularStore, read_label_configs

logger = logging.getLogger(__name__)


class RunFailed(Exception):
    """Raised when a run fails outside of the per-item error handling."""


class MessageSender(Protocol):
    def send(self, message: str, token: str) -> None: ...


def run(
    store: TabularStore,
    mailbox: Mailbox,
    sender: MessageSender,
    config: RelayConfig | None = None,
) -> RunSummary:
    cfg = config or RelayConfig()
    try:
        configs = read_label_configs(store, cfg)
    except NoValidConfiguration:
        raise
    except Exception as exc:  # noqa: BLE001
        raise RunFailed(f"Failed to load configuration: {exc}") from exc
    logger.info("Loaded %s token configuration(s)", len(configs))

    summary = RunSummary(configs=len(configs))
    try:
        for idx, label_config in enumerate(configs, start=1):
            logger.info("---- Processing token %s/%s ----", idx, len(configs))
            try:
                _process_config(label_config, mailbox, sender, cfg, summary)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Failed to process token %s: %s", idx, exc)
                summary.errors += 1
    except Exception as exc:  # noqa: BLE001
        raise RunFailed(f"Run failed: {exc}") from exc

    logger.info("Run completed. Sent=%s Errors=%s", summary.sent, summary.errors)
    return summary


def _process_config(
    label_config: LabelConfig,
    mailbox: Mailbox,
    sender: MessageSender,
    cfg: RelayConfig,
    summary: RunSummary,
) -> None:
    for label in label_config.labels:
        try:
            messages = fetch_unread_messages(mailbox, label, cfg)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to fetch mail for label=%s: %s", label, exc)
            summary.errors += 1
            continue

        for message in messages:
            try:
                sender.send(message.formatted_text, label_config.token)
                summary.sent += 1
            except Exception as exc:  # noqa: BLE001
                logger.exception("Failed to send message from %s (label=%s): %s", message.sender, label, exc)
                summary.errors += 1
