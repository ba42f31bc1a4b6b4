"""Per-company email notification preferences"""

from typing import Any, Optional

NOTIFICATION_KEYS = (
    "jobUpdates",
    "employeeUpdates",
    "bookingUpdates",
    "quoteUpdates",
    "financeUpdates",
)


def default_notification_settings() -> dict[str, bool]:
    return {key: True for key in NOTIFICATION_KEYS}


def normalize_notification_settings(raw: Optional[Any]) -> dict[str, bool]:
    """
    Coerce stored or submitted settings to the full key set.

    Accepts either ``{"settings": {...}}`` or a bare mapping. Unknown keys are
    dropped and non-boolean values fall back to the default (enabled).
    """
    if isinstance(raw, dict) and isinstance(raw.get("settings"), dict):
        raw = raw["settings"]

    settings = default_notification_settings()
    if not isinstance(raw, dict):
        return settings

    for key in NOTIFICATION_KEYS:
        value = raw.get(key)
        if isinstance(value, bool):
            settings[key] = value
    return settings


def is_notification_enabled(company, key: str) -> bool:
    if company is None:
        return False
    return normalize_notification_settings(company.notification_settings).get(key, True)
