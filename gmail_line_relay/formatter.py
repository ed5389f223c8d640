from __future__ import annotations

from .config import RelayConfig
from .models import FormattedMessage, MailRecord


def truncate_body(body: str, limit: int, ellipsis: str = "...") -> str:
    if len(body) <= limit:
        return body
    return body[:limit] + ellipsis


def cap_message(text: str, max_length: int, ellipsis: str = "...") -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ellipsis)] + ellipsis


def build_message_text(sender: str, subject: str, body: str, config: RelayConfig) -> str:
    sections = [
        f"{config.sender_prefix}{sender}",
        f"{config.subject_prefix}{subject}",
        f"{config.content_prefix}\n{body}",
    ]
    return config.separator.join(sections)


def format_mail(mail: MailRecord, config: RelayConfig | None = None) -> FormattedMessage:
    """
    Convert a mail record into the text sent to LINE.

    The body is cut to ``body_max_length`` first (the ellipsis is added on top of
    the limit), then the whole message is capped at ``max_message_length``.
    """
    cfg = config or RelayConfig()
    sender = mail.sender or ""
    subject = mail.subject or ""
    body = truncate_body(mail.plain_body or "", cfg.body_max_length, cfg.ellipsis)
    text = build_message_text(sender, subject, body, cfg)
    return FormattedMessage(
        sender=sender,
        subject=subject,
        body=body,
        formatted_text=cap_message(text, cfg.max_message_length, cfg.ellipsis),
    )
