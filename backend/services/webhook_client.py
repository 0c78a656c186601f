"""Client for the n8n workflow webhook."""
import time
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
import httpx

from config import N8N_WEBHOOK_URL, N8N_CALLBACK_SECRET, N8N_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class WebhookResponse:
    """Upstream reply from the webhook, JSON-decoded when possible."""
    status_code: int
    ok: bool
    raw: Any
    latency_ms: int


@dataclass
class WebhookError:
    """Structured error for failed webhook calls."""
    code: str
    message: str
    details: Dict[str, Any]


class WebhookClientError(Exception):
    """Custom exception for webhook transport errors with structured error information."""

    def __init__(self, error: WebhookError):
        self.error = error
        super().__init__(error.message)


class WebhookClient:
    """Forwards JSON payloads to the configured n8n webhook."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        callback_secret: Optional[str] = None,
        timeout: float = N8N_TIMEOUT
    ):
        """
        Args:
            webhook_url: n8n webhook URL (defaults to N8N_WEBHOOK_URL)
            callback_secret: Sent as x-callback-secret when set
            timeout: Request timeout in seconds

        Raises:
            ValueError: If no webhook URL is available
        """
        self.webhook_url = webhook_url or N8N_WEBHOOK_URL
        if not self.webhook_url:
            raise ValueError("N8N_WEBHOOK_URL must be provided or set in environment")

        self.callback_secret = callback_secret if callback_secret is not None else N8N_CALLBACK_SECRET
        self.timeout = timeout
        logger.info("WebhookClient initialized successfully")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.callback_secret:
            headers["x-callback-secret"] = self.callback_secret
        return headers

    def post(self, payload: Dict[str, Any]) -> WebhookResponse:
        """
        POST a JSON payload to the webhook.

        Non-2xx replies are returned (with ok=False), not raised, so callers
        can relay the upstream status and body.

        Args:
            payload: JSON-serializable request body

        Returns:
            WebhookResponse with status, decoded body and latency

        Raises:
            WebhookClientError: If the webhook cannot be reached or times out
        """
        start_time = time.time()

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.webhook_url, headers=self._headers(), json=payload)
        except httpx.TimeoutException as e:
            latency_ms = int((time.time() - start_time) * 1000)
            error = WebhookError(
                code="TIMEOUT_ERROR",
                message=f"Webhook request timed out after {self.timeout}s",
                details={"latency_ms": latency_ms, "original_error": str(e)}
            )
            logger.error(
                f"Webhook timeout: latency={latency_ms}ms, error={e}",
                extra={"error_code": error.code, "error_details": error.details}
            )
            raise WebhookClientError(error) from e
        except httpx.RequestError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            error = WebhookError(
                code="NETWORK_ERROR",
                message=f"Failed to reach webhook: {str(e)}",
                details={"latency_ms": latency_ms, "original_error": str(e)}
            )
            logger.error(
                f"Webhook network error: latency={latency_ms}ms, error={e}",
                extra={"error_code": error.code, "error_details": error.details}
            )
            raise WebhookClientError(error) from e

        latency_ms = int((time.time() - start_time) * 1000)
        raw = self._decode_body(response)
        ok = 200 <= response.status_code < 300

        if ok:
            logger.info(f"Webhook replied {response.status_code} in {latency_ms}ms")
        else:
            logger.warning(
                f"Webhook returned status {response.status_code} in {latency_ms}ms",
                extra={"status_code": response.status_code, "latency_ms": latency_ms}
            )

        return WebhookResponse(status_code=response.status_code, ok=ok, raw=raw, latency_ms=latency_ms)

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        """Decode JSON when the upstream says it is JSON, otherwise keep the text."""
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                logger.warning("Webhook declared JSON but sent an unparseable body")
        return response.text
