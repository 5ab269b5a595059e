from src.reminders.matcher import ReminderMatch, ReminderMatcher

__all__ = ["ReminderMatch", "ReminderMatcher"]
