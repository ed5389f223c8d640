from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class LabelConfig:
    token: str
    labels: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MailRecord:
    id: str
    sender: str
    subject: str
    plain_body: str
    unread: bool
    thread_id: Optional[str] = None


@dataclass(frozen=True)
class FormattedMessage:
    sender: str
    subject: str
    body: str
    formatted_text: str


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: str


@dataclass
class RunSummary:
    sent: int = 0
    errors: int = 0
    configs: int = 0
