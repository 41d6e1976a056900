"""Enumerations shared across all Mariner contracts."""

from enum import Enum


class AppState(str, Enum):
    """Top-level screen of the dashboard. Exactly one is active at a time."""
    SEARCH = "search"
    ZONE_LIST = "zone_list"
    LOADING = "loading"
    DISPLAY = "display"
    PROVISIONING = "provisioning"
    ERROR = "error"
    SAVED_LIST = "saved_list"
    SAVE_PROMPT = "save_prompt"
    CONFIRM_DELETE = "confirm_delete"


class TideType(str, Enum):
    HIGH = "H"
    LOW = "L"


class AlertSeverity(str, Enum):
    EXTREME = "Extreme"
    SEVERE = "Severe"
    MODERATE = "Moderate"
    MINOR = "Minor"
    UNKNOWN = "Unknown"
