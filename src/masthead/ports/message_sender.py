"""Outbound message interface."""

from typing import Protocol


class MessageSender(Protocol):
    """Interface for delivering a message on one channel (email, chat)."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        """Deliver a message. Raises DeliveryError on failure."""
        ...
