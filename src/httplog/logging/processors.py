"""Structlog processors for httplog output."""

from typing import Any

_SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "req_auth_header",
        "cookie",
        "set-cookie",
        "password",
        "token",
        "access_token",
        "refresh_token",
        "api_key",
        "secret",
        "session_id",
    }
)

REDACTED = "***REDACTED***"


def censor_sensitive_data(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact values for keys that look like secrets."""
    for key in event_dict:
        if key.lower() in _SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def add_app_name(app_name: str) -> Any:
    """Return a processor that binds app=<name> to every event."""

    def processor(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("app", app_name)
        return event_dict

    return processor
