from src.models.contest import Contest, ContestPlatform
from src.models.user import (
    ContestCategory,
    ReminderPreferences,
    User,
    categories_for_platform,
)

__all__ = [
    "Contest",
    "ContestCategory",
    "ContestPlatform",
    "ReminderPreferences",
    "User",
    "categories_for_platform",
]
