"""Intent taxonomy — the closed set of things a user can ask for."""

from enum import Enum
from typing import Dict


class Intent(str, Enum):
    # File operations
    LIST_FILES = "LIST_FILES"
    ORGANIZE_FILES = "ORGANIZE_FILES"
    DELETE_FILES = "DELETE_FILES"

    # App control
    LAUNCH_APP = "LAUNCH_APP"
    LIST_APPS = "LIST_APPS"

    # Smart queries
    SHOW_FILTERED_PHOTOS = "SHOW_FILTERED_PHOTOS"
    SEND_MESSAGE = "SEND_MESSAGE"
    SEARCH_LOCATION = "SEARCH_LOCATION"

    # System control
    ADJUST_SETTINGS = "ADJUST_SETTINGS"
    TOGGLE_FEATURE = "TOGGLE_FEATURE"

    # Communication
    MAKE_CALL = "MAKE_CALL"

    # Navigation
    GET_DIRECTIONS = "GET_DIRECTIONS"
    NAVIGATE = "NAVIGATE"

    # Built-in tools
    CALCULATE = "CALCULATE"

    UNKNOWN = "UNKNOWN"     # Explicit "no match" sentinel, never None

    @classmethod
    def from_label(cls, label: str) -> "Intent":
        """Resolve a model-emitted label. Anything outside the set is UNKNOWN."""
        try:
            return cls(label.strip())
        except ValueError:
            return cls.UNKNOWN


class CoarseCategory(str, Enum):
    """Handler routing bucket. Several intents share one category."""

    FILE_MANAGEMENT = "file_management"
    APP_CONTROL = "app_control"
    SYSTEM_CONTROL = "system_control"
    COMMUNICATION = "communication"
    NAVIGATION = "navigation"
    UNKNOWN = "unknown"


INTENT_CATEGORIES: Dict[Intent, CoarseCategory] = {
    Intent.LIST_FILES: CoarseCategory.FILE_MANAGEMENT,
    Intent.ORGANIZE_FILES: CoarseCategory.FILE_MANAGEMENT,
    Intent.DELETE_FILES: CoarseCategory.FILE_MANAGEMENT,
    Intent.LAUNCH_APP: CoarseCategory.APP_CONTROL,
    Intent.LIST_APPS: CoarseCategory.APP_CONTROL,
    Intent.ADJUST_SETTINGS: CoarseCategory.SYSTEM_CONTROL,
    Intent.TOGGLE_FEATURE: CoarseCategory.SYSTEM_CONTROL,
    Intent.MAKE_CALL: CoarseCategory.COMMUNICATION,
    Intent.SEND_MESSAGE: CoarseCategory.COMMUNICATION,
    Intent.GET_DIRECTIONS: CoarseCategory.NAVIGATION,
    Intent.NAVIGATE: CoarseCategory.NAVIGATION,
    # No dedicated category; answered by the engine or an UNKNOWN handler
    Intent.SHOW_FILTERED_PHOTOS: CoarseCategory.UNKNOWN,
    Intent.SEARCH_LOCATION: CoarseCategory.UNKNOWN,
    Intent.CALCULATE: CoarseCategory.UNKNOWN,
    Intent.UNKNOWN: CoarseCategory.UNKNOWN,
}


def category_for(intent: Intent) -> CoarseCategory:
    """Total mapping from a fine intent to its routing category."""
    return INTENT_CATEGORIES[intent]
