"""Ports - interfaces/protocols for external dependencies."""

from .production_repo import ProductionRepository
from .message_sender import MessageSender

__all__ = [
    "ProductionRepository",
    "MessageSender",
]
