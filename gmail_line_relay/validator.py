from __future__ import annotations

import re

from .config import RelayConfig
from .models import ValidationResult


class InvalidCredential(Exception):
    """Raised when a LINE channel access token fails validation."""


def validate_token(token: str | None, config: RelayConfig | None = None) -> ValidationResult:
    """
    Check a LINE channel access token without touching the network.

    Rules are applied in order and the first failure wins:
    empty, too short, characters outside ``[A-Za-z0-9+/=]``.
    """
    cfg = config or RelayConfig()
    if token is None or not token.strip():
        return ValidationResult(is_valid=False, message="Token is empty.")
    if len(token) < cfg.min_token_length:
        return ValidationResult(
            is_valid=False,
            message=f"Token is too short: length={len(token)} (minimum {cfg.min_token_length}).",
        )
    if re.fullmatch(cfg.valid_token_pattern, token) is None:
        return ValidationResult(is_valid=False, message="Token contains invalid characters.")
    return ValidationResult(is_valid=True, message="Token is valid.")


def ensure_valid_token(token: str | None, config: RelayConfig | None = None) -> str:
    result = validate_token(token, config)
    if not result.is_valid:
        raise InvalidCredential(result.message)
    return token  # type: ignore[return-value]
