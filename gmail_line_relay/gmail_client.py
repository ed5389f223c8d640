from __future__ import annotations

import base64
import logging
import re
from html import unescape
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .models import MailRecord

logger = logging.getLogger(__name__)

UNREAD_LABEL = "UNREAD"


def load_credentials(credentials_file: Path, token_file: Path, scopes: Sequence[str]) -> Credentials:
    """Load cached OAuth tokens, refreshing or running the desktop flow when needed."""
    creds: Credentials | None = None

    if token_file.exists():
        creds = Credentials.from_authorized_user_file(str(token_file), list(scopes))

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            logger.info("Refreshing OAuth token...")
            creds.refresh(Request())
        else:
            if not credentials_file.exists():
                raise FileNotFoundError(
                    f"Missing OAuth client file: {credentials_file}. "
                    "Download it from Google Cloud Console and place it there."
                )
            logger.info("Starting OAuth desktop flow (browser login)...")
            flow = InstalledAppFlow.from_client_secrets_file(str(credentials_file), list(scopes))
            creds = flow.run_local_server(port=0)

        token_file.parent.mkdir(parents=True, exist_ok=True)
        token_file.write_text(creds.to_json(), encoding="utf-8")
        logger.info("Saved OAuth token to %s", token_file)

    return creds


class GmailMailbox:
    """Gmail API wrapper: thread search, message listing and marking read."""

    def __init__(self, creds, service: Any = None, user_id: str = "me") -> None:
        self.service = service or build("gmail", "v1", credentials=creds, cache_discovery=False)
        self.user_id = user_id

    def search(self, query: str, max_pages: int = 20) -> List[str]:
        thread_ids: List[str] = []
        page_token: Optional[str] = None
        for _ in range(max_pages):
            kwargs: Dict[str, Any] = {"userId": self.user_id, "q": query}
            if page_token:
                kwargs["pageToken"] = page_token
            resp = self.service.users().threads().list(**kwargs).execute()
            thread_ids.extend(t["id"] for t in resp.get("threads", []) if "id" in t)
            page_token = resp.get("nextPageToken")
            if not page_token:
                break
        logger.info("Query %r matched %s thread(s)", query, len(thread_ids))
        return thread_ids

    def list_messages(self, thread_ids: Sequence[str]) -> List[List[MailRecord]]:
        threads: List[List[MailRecord]] = []
        for thread_id in thread_ids:
            thread = (
                self.service.users()
                .threads()
                .get(userId=self.user_id, id=thread_id, format="full")
                .execute()
            )
            threads.append([parse_message(m) for m in thread.get("messages", [])])
        return threads

    def mark_read(self, record: MailRecord) -> None:
        (
            self.service.users()
            .messages()
            .modify(userId=self.user_id, id=record.id, body={"removeLabelIds": [UNREAD_LABEL]})
            .execute()
        )


def parse_message(message: Dict[str, Any]) -> MailRecord:
    payload = message.get("payload", {}) or {}
    headers = payload.get("headers", []) or []
    plain, html = _extract_text(payload)
    return MailRecord(
        id=message.get("id", ""),
        thread_id=message.get("threadId"),
        sender=_get_header(headers, "From"),
        subject=_get_header(headers, "Subject"),
        plain_body=plain if plain.strip() else _strip_html(html),
        unread=UNREAD_LABEL in (message.get("labelIds") or []),
    )


def _get_header(headers: List[Dict[str, str]], name: str) -> str:
    for h in headers:
        if h.get("name", "").lower() == name.lower():
            return h.get("value", "")
    return ""


def _decode_base64url(data: str) -> str:
    if not data:
        return ""
    missing_padding = (-len(data)) % 4
    if missing_padding:
        data += "=" * missing_padding
    return base64.urlsafe_b64decode(data.encode("utf-8")).decode("utf-8", errors="replace")


def _extract_text(payload: Dict[str, Any]) -> tuple[str, str]:
    """Return (plain_text, html_text) from a Gmail payload, depth first."""
    mime_type = payload.get("mimeType", "")
    body = payload.get("body", {}) or {}

    if mime_type == "text/plain":
        return _decode_base64url(body.get("data", "")), ""
    if mime_type == "text/html":
        return "", _decode_base64url(body.get("data", ""))

    plain_parts: List[str] = []
    html_parts: List[str] = []
    for part in payload.get("parts", []) or []:
        plain, html = _extract_text(part)
        if plain:
            plain_parts.append(plain)
        if html:
            html_parts.append(html)
    return "\n".join(plain_parts), "\n".join(html_parts)


def _strip_html(html: str) -> str:
    if not html:
        return ""
    text = re.sub(r"(?is)<(script|style).*?>.*?</\1>", "", html)
    text = re.sub(r"(?i)<br\s*/?>", "\n", text)
    text = re.sub(r"(?i)</(p|div|tr|li|h\d)>", "\n", text)
    text = re.sub(r"(?s)<.*?>", "", text)
    text = unescape(text)
    text = re.sub(r"\r\n?", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
