from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# --------------------------------
# 設定値

# LINE Messaging API（ブロードキャスト送信）
LINE_API_URL = "https://api.line.me/v2/bot/message/broadcast"

# LINEチャネルアクセストークンの個数（スプレッドシートの行数）
NUMBER_OF_TOKENS = 4

# Gmailラベルの個数（スプレッドシートの列数）
NUMBER_OF_LABELS = 6

# メール本文の最大文字数
BODY_MAX_LENGTH = 500

# LINEメッセージの最大文字数
MAX_MESSAGE_LENGTH = 5000

# 切り詰め時に付与する省略記号
ELLIPSIS = "..."

# LINEトークンの最小文字数と許可文字
MIN_TOKEN_LENGTH = 40
VALID_TOKEN_PATTERN = r"^[A-Za-z0-9+/=]+$"

# スプレッドシートの行・列（1始まり）
HEADER_ROW = 1
DATA_START_ROW = 2
TOKEN_COLUMN = 1
LABEL_START_COLUMN = 2

# Gmail検索条件
UNREAD_CONDITION = "is:unread"
LABEL_FORMAT = "label:%s"

# メッセージフォーマット
SEPARATOR = "\n\n"
SENDER_PREFIX = "📧 送信者："
SUBJECT_PREFIX = "📋 件名："
CONTENT_PREFIX = "📄 内容："

# API呼び出し設定
REQUEST_DELAY_SECONDS = 0.1
MAX_RETRIES = 3
TIMEOUT_SECONDS = 30.0

# トリガー設定
TRIGGER_INTERVAL_HOURS = 1
TRIGGER_FUNCTION_NAME = "main"

# シート設定
SHEET_NAME = "プロパティ"
TOKEN_HEADER = "LINE Channel Access Token"
LABEL_HEADER_FORMAT = "Gmail Label Name %s"
TOKEN_HEADER_COLOR = "lightgreen"
LABEL_HEADER_COLOR = "lightyellow"
BORDER_COLOR = "black"

# Google API のスコープ（既読化のため modify が必要）
SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/spreadsheets",
]
# --------------------------------


@dataclass(frozen=True)
class RelayConfig:
    line_api_url: str = LINE_API_URL
    number_of_tokens: int = NUMBER_OF_TOKENS
    number_of_labels: int = NUMBER_OF_LABELS
    body_max_length: int = BODY_MAX_LENGTH
    max_message_length: int = MAX_MESSAGE_LENGTH
    ellipsis: str = ELLIPSIS
    min_token_length: int = MIN_TOKEN_LENGTH
    valid_token_pattern: str = VALID_TOKEN_PATTERN
    header_row: int = HEADER_ROW
    data_start_row: int = DATA_START_ROW
    token_column: int = TOKEN_COLUMN
    label_start_column: int = LABEL_START_COLUMN
    unread_condition: str = UNREAD_CONDITION
    label_format: str = LABEL_FORMAT
    separator: str = SEPARATOR
    sender_prefix: str = SENDER_PREFIX
    subject_prefix: str = SUBJECT_PREFIX
    content_prefix: str = CONTENT_PREFIX
    request_delay: float = REQUEST_DELAY_SECONDS
    max_retries: int = MAX_RETRIES
    timeout: float = TIMEOUT_SECONDS
    trigger_interval_hours: int = TRIGGER_INTERVAL_HOURS
    trigger_function_name: str = TRIGGER_FUNCTION_NAME
    sheet_name: str = SHEET_NAME
    token_header_color: str = TOKEN_HEADER_COLOR
    label_header_color: str = LABEL_HEADER_COLOR
    border_color: str = BORDER_COLOR


@dataclass
class Settings:
    spreadsheet_id: str
    sheet_name: str
    credentials_file: Path
    token_file: Path

    @staticmethod
    def from_env(sheet_name_default: str = SHEET_NAME) -> "Settings":
        def require(name: str) -> str:
            value = os.getenv(name)
            if value is None or not value.strip():
                raise ValueError(f"Environment variable {name} is required.")
            return value.strip()

        def optional_with_default(name: str, default: str) -> str:
            value = os.getenv(name)
            if value is None or not value.strip():
                return default
            return value.strip()

        return Settings(
            spreadsheet_id=require("SPREADSHEET_ID"),
            sheet_name=optional_with_default("SHEET_NAME", sheet_name_default),
            credentials_file=Path(
                optional_with_default("GOOGLE_CREDENTIALS_FILE", str(Path("credentials") / "credentials.json"))
            ),
            token_file=Path(optional_with_default("GOOGLE_TOKEN_FILE", str(Path("credentials") / "token.json"))),
        )
