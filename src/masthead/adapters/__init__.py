"""Adapters - I/O implementations of ports."""

from .supabase_rest import SupabaseRestAdapter, BackendError
from .edge_email import EdgeFunctionEmailSender, DeliveryError
from .telegram_sender import TelegramSender

__all__ = [
    "SupabaseRestAdapter",
    "BackendError",
    "EdgeFunctionEmailSender",
    "DeliveryError",
    "TelegramSender",
]
