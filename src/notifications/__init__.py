from src.notifications.dispatcher import DispatchResult, ReminderDispatcher
from src.notifications.mailer import EmailSender

__all__ = ["DispatchResult", "EmailSender", "ReminderDispatcher"]
