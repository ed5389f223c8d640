from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

from .config import RelayConfig
from .formatter import format_mail
from .models import FormattedMessage, MailRecord

logger = logging.getLogger(__name__)


class Mailbox(Protocol):
    def search(self, query: str) -> List[str]: ...

    def list_messages(self, thread_ids: Sequence[str]) -> List[List[MailRecord]]: ...

    def mark_read(self, record: MailRecord) -> None: ...


def build_search_query(label: str, config: RelayConfig | None = None) -> str:
    cfg = config or RelayConfig()
    return f"{cfg.label_format % label} {cfg.unread_condition}"


def fetch_unread_messages(
    mailbox: Mailbox, label: str, config: RelayConfig | None = None
) -> List[FormattedMessage]:
    """
    Collect unread messages under ``label``, marking each one read as it is formatted.

    Threads may mix read and unread messages; only the unread ones are taken.
    The result is reversed so the most recently encountered message comes first.
    A message marked read here is not revisited, even if its delivery fails later.
    """
    cfg = config or RelayConfig()
    query = build_search_query(label, cfg)
    thread_ids = mailbox.search(query)
    if not thread_ids:
        logger.info("No unread threads for label=%s", label)
        return []

    messages: List[FormattedMessage] = []
    for thread in mailbox.list_messages(thread_ids):
        for record in thread:
            if not record.unread:
                continue
            messages.append(format_mail(record, cfg))
            mailbox.mark_read(record)

    messages.reverse()
    logger.info("Fetched %s unread message(s) for label=%s", len(messages), label)
    return messages
