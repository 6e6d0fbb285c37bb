"""Email delivery through the backend's send-email edge function."""

import logging

import requests

from masthead.config import Config, load_config

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised when a message could not be delivered."""

    pass


class EdgeFunctionEmailSender:
    """
    Sends email by invoking a hosted edge function.

    Implements MessageSender protocol. Template rendering happens in the
    function; this side only supplies recipient, subject and text.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        self.config.require_backend()
        self._session = session or requests.Session()

    @property
    def function_url(self) -> str:
        return f"{self.config.supabase_url}/functions/v1/{self.config.email_function}"

    def send(self, recipient: str, subject: str, body: str) -> None:
        if not recipient:
            raise DeliveryError("No recipient email address")

        try:
            resp = self._session.post(
                self.function_url,
                json={"type": "reminder", "to": recipient, "taskTitle": subject, "message": body},
                headers={"Authorization": f"Bearer {self.config.supabase_service_key}"},
                timeout=30,
            )
        except requests.RequestException as e:
            raise DeliveryError(f"Email to {recipient} failed: {e}") from e

        if not resp.ok:
            raise DeliveryError(f"Email to {recipient} failed ({resp.status_code}): {resp.text}")
        logger.info(f"Sent email to {recipient}")
