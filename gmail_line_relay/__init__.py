"""Relay unread Gmail messages to LINE, configured from a spreadsheet."""

__all__ = [
    "config",
    "models",
    "validator",
    "sheet_config",
    "google_sheets",
    "gmail_client",
    "mail_fetcher",
    "formatter",
    "line_client",
    "orchestrator",
    "trigger",
]
