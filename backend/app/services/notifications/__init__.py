"""
Customer and admin notifications.
"""

from app.services.notifications.mailer import DeliveryResult, EmailSender, SmtpTransport, default_transports
from app.services.notifications.admin import AdminRelay
from app.services.notifications.templates import Branding
from app.services.notifications.dispatcher import NotificationDispatcher

__all__ = [
    "AdminRelay",
    "Branding",
    "DeliveryResult",
    "EmailSender",
    "NotificationDispatcher",
    "SmtpTransport",
    "default_transports",
]
