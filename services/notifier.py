"""
Callback delivery for extracted transactions.
Single POST per transaction: no retries, outcome is recorded either way.
"""
import time
from datetime import datetime, timezone

import requests

from core.exceptions import DeliveryError
from core.logger import setup_logger
from core.schema import DeliveryOutcome, NotificationPayload, NotificationRecord, Transaction

logger = setup_logger(__name__)

USER_AGENT_STRING = "go-transact"
USER_AGENT_VERSION = 1
USER_AGENT = f"{USER_AGENT_STRING}/{USER_AGENT_VERSION}"
TOKEN_HEADER = "X-Go-Transact-Token"
HTTP_REQUEST_TIMEOUT_SECONDS = 15
# Callback replies are not stored; stop reading after this many bytes
MAX_RESPONSE_BYTES = 8 * 1024
SUCCESS_STATUS_TEXT = "Callback posted"


class NotificationForwarder:
    """Posts notification payloads to the configured callback endpoint."""

    def __init__(self, callback_url: str, token: str, timeout: float = HTTP_REQUEST_TIMEOUT_SECONDS):
        self.callback_url = callback_url
        self.token = token
        self.timeout = timeout

    def build_headers(self, token: str) -> dict:
        return {
            "Content-Type": "application/json",
            TOKEN_HEADER: token,
            "Date": datetime.now(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S GMT"),
            "User-Agent": USER_AGENT,
        }

    def _read_response(self, response: requests.Response, deadline: float) -> None:
        """
        Consume the response body before the deadline.

        The body is read one byte at a time so a server trickling its
        response is caught between reads rather than after it finishes.

        Raises:
            requests.exceptions.Timeout: If the deadline passes first
        """
        received = 0
        for chunk in response.iter_content(chunk_size=1):
            if time.monotonic() > deadline:
                break
            received += len(chunk)
            if received >= MAX_RESPONSE_BYTES:
                break
        if time.monotonic() > deadline:
            raise requests.exceptions.Timeout(
                f"callback did not complete within {self.timeout}s"
            )

    def post(self, callback_url: str, token: str, payload: NotificationPayload) -> DeliveryOutcome:
        """
        POST a payload once and report what happened.

        The whole exchange (connect, send, status, body) must finish within
        ``self.timeout`` seconds; running over counts as a transport failure.

        Args:
            callback_url: Endpoint to post to
            token: Value for the auth token header
            payload: Notification body

        Returns:
            DeliveryOutcome; ``sent`` is True only for an exact HTTP 200
        """
        deadline = time.monotonic() + self.timeout
        try:
            response = requests.post(
                callback_url,
                headers=self.build_headers(token),
                data=payload.to_json(),
                timeout=self.timeout,
                stream=True,
            )
            try:
                if response.status_code == 200:
                    self._read_response(response, deadline)
            finally:
                response.close()
        except requests.exceptions.RequestException as e:
            error = DeliveryError(
                f"failure sending request to {callback_url}. {e}",
                details={"url": callback_url},
            )
            logger.error(error.message)
            return DeliveryOutcome(sent=False, status_text=error.message, response_text="")

        if response.status_code == 200:
            logger.info(f"Callback posted to {callback_url}")
            return DeliveryOutcome(sent=True, status_text=SUCCESS_STATUS_TEXT, response_text="200 OK")

        error = DeliveryError(
            f"server returned {response.status_code}",
            details={"url": callback_url, "status_code": response.status_code},
        )
        logger.error(f"Callback to {callback_url} rejected: {error.message}")
        return DeliveryOutcome(
            sent=False,
            status_text=error.message,
            response_text=" ".join([str(response.status_code), response.reason or ""]).strip(),
        )

    def notify(self, transaction: Transaction, from_email: str) -> NotificationRecord:
        """
        Build the payload for a transaction, post it, and describe the attempt.

        Returns:
            NotificationRecord holding the exact body that was sent
        """
        payload = NotificationPayload.from_transaction(transaction)
        outcome = self.post(self.callback_url, self.token, payload)

        return NotificationRecord(
            callback_url=self.callback_url,
            serialized_payload=payload.to_json(),
            sent=outcome.sent,
            status_text=outcome.status_text,
            response_text=outcome.response_text,
            from_email=from_email,
            template_name=transaction.template_name,
        )
