from __future__ import annotations

import logging
from typing import Any, List, Protocol, Sequence

from .config import LABEL_HEADER_FORMAT, TOKEN_HEADER, RelayConfig
from .models import LabelConfig
from .validator import InvalidCredential, ensure_valid_token

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration sheet cannot be used."""


class NoValidConfiguration(ConfigError):
    """Raised when no row holds both a valid token and at least one label."""


class TabularStore(Protocol):
    """Grid access with 1-based row/column indices."""

    def get_values(self, row: int, column: int, num_rows: int, num_columns: int) -> List[List[Any]]: ...

    def set_values(self, row: int, column: int, values: Sequence[Sequence[Any]]) -> None: ...

    def rename(self, name: str) -> None: ...

    def format_header(
        self,
        *,
        num_columns: int,
        token_color: str,
        label_color: str,
        num_rows: int,
        border_color: str,
    ) -> None: ...


def clean_token(raw: Any) -> str:
    text = "" if raw is None else str(raw)
    return text.strip().replace("\r", "").replace("\n", "")


def clean_labels(raw_labels: Sequence[Any]) -> List[str]:
    labels: List[str] = []
    for raw in raw_labels:
        label = "" if raw is None else str(raw).strip()
        if label:
            labels.append(label)
    return labels


def read_label_configs(store: TabularStore, config: RelayConfig | None = None) -> List[LabelConfig]:
    cfg = config or RelayConfig()
    num_columns = 1 + cfg.number_of_labels
    grid = store.get_values(cfg.data_start_row, cfg.token_column, cfg.number_of_tokens, num_columns)

    configs: List[LabelConfig] = []
    for offset in range(cfg.number_of_tokens):
        row_number = cfg.data_start_row + offset
        row = list(grid[offset]) if offset < len(grid) else []
        row += [""] * (num_columns - len(row))

        token = clean_token(row[0])
        if not token:
            continue
        try:
            ensure_valid_token(token, cfg)
        except InvalidCredential as exc:
            logger.warning("Skipping row %s: invalid token (%s)", row_number, exc)
            continue

        label_offset = cfg.label_start_column - cfg.token_column
        labels = clean_labels(row[label_offset : label_offset + cfg.number_of_labels])
        if not labels:
            logger.warning("Skipping row %s: no labels configured", row_number)
            continue

        logger.info("Row %s: %s label(s) configured", row_number, len(labels))
        configs.append(LabelConfig(token=token, labels=labels))

    if not configs:
        raise NoValidConfiguration(
            f"No valid token/label rows found in rows {cfg.data_start_row}-"
            f"{cfg.data_start_row + cfg.number_of_tokens - 1}."
        )
    return configs


def build_header_row(config: RelayConfig | None = None) -> List[str]:
    cfg = config or RelayConfig()
    return [TOKEN_HEADER] + [LABEL_HEADER_FORMAT % (i + 1) for i in range(cfg.number_of_labels)]


def initialize_sheet(store: TabularStore, config: RelayConfig | None = None) -> None:
    """Rename the sheet, write the header row and apply the header styling."""
    cfg = config or RelayConfig()
    headers = build_header_row(cfg)
    store.rename(cfg.sheet_name)
    store.set_values(cfg.header_row, cfg.token_column, [headers])
    store.format_header(
        num_columns=len(headers),
        token_color=cfg.token_header_color,
        label_color=cfg.label_header_color,
        num_rows=cfg.number_of_tokens + 1,
        border_color=cfg.border_color,
    )
    logger.info("Initialized sheet %s with %s header columns", cfg.sheet_name, len(headers))
