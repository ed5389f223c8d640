from __future__ import annotations

from gmail_line_relay.config import RelayConfig
from gmail_line_relay.formatter import cap_message, format_mail, truncate_body
from gmail_line_relay.models import MailRecord


def _mail(body: str = "本文です", subject: str = "テスト件名", sender: str = "sender@example.com") -> MailRecord:
    return MailRecord(id="m1", sender=sender, subject=subject, plain_body=body, unread=True)


def test_format_mail_includes_sections_in_order():
    formatted = format_mail(_mail())
    text = formatted.formatted_text
    assert text == "📧 送信者：sender@example.com\n\n📋 件名：テスト件名\n\n📄 内容：\n本文です"
    assert formatted.sender == "sender@example.com"
    assert formatted.subject == "テスト件名"
    assert formatted.body == "本文です"


def test_body_within_limit_is_kept():
    body = "A" * 500
    formatted = format_mail(_mail(body=body))
    assert formatted.body == body
    assert not formatted.body.endswith("...")


def test_long_body_is_truncated_with_ellipsis():
    formatted = format_mail(_mail(body="A" * 600))
    assert formatted.body.endswith("...")
    assert len(formatted.body) == 503
    assert formatted.formatted_text.endswith("A" * 500 + "...")


def test_long_message_is_capped_to_max_length():
    config = RelayConfig(body_max_length=10_000)
    formatted = format_mail(_mail(body="B" * 8000), config)
    assert len(formatted.formatted_text) == 5000
    assert formatted.formatted_text.endswith("...")


def test_long_subject_is_capped_even_with_short_body():
    formatted = format_mail(_mail(subject="S" * 6000))
    assert len(formatted.formatted_text) == 5000
    assert formatted.formatted_text.endswith("...")
    assert formatted.subject == "S" * 6000


def test_truncate_body_and_cap_message_helpers():
    assert truncate_body("abc", 3) == "abc"
    assert truncate_body("abcd", 3) == "abc..."
    assert cap_message("abcdef", 6) == "abcdef"
    assert cap_message("abcdefg", 6) == "abc..."


def test_missing_fields_are_rendered_empty():
    mail = MailRecord(id="m1", sender="", subject="", plain_body="", unread=True)
    formatted = format_mail(mail)
    assert formatted.formatted_text.startswith("📧 送信者：\n\n📋 件名：")
