"""Post press notifications to Slack via chat.postMessage."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from dashwatch.errors import ConfigurationError, NotificationDeliveryError

logger = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api"


@dataclass
class NotificationResult:
    """Outcome of a single notification attempt."""

    success: bool
    channel: str
    error: str | None = None
    timestamp: str | None = None  # Slack message "ts" on success


class SlackNotifier:
    """Sends one message per call as the bot identity behind *token*.

    Failures are logged and reported in the result, never raised and never
    retried.
    """

    def __init__(
        self,
        token: str,
        timeout: float = 10.0,
        base_url: str = SLACK_API_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ConfigurationError("Slack API token is required")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
        )

    async def __aenter__(self) -> "SlackNotifier":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post_message(self, channel: str, message: str) -> dict[str, Any]:
        try:
            resp = await self._client.post(
                "/chat.postMessage",
                json={"channel": channel, "text": message},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(str(e) or type(e).__name__) from e
        except ValueError as e:
            raise NotificationDeliveryError(f"invalid response from Slack: {e}") from e

        # Slack reports API errors (invalid_auth, channel_not_found) with HTTP 200.
        if not data.get("ok"):
            raise NotificationDeliveryError(data.get("error", "unknown_error"))
        return data

    async def notify(self, channel: str, message: str) -> NotificationResult:
        """Post *message* to *channel* once."""
        try:
            data = await self._post_message(channel, message)
        except NotificationDeliveryError as e:
            logger.error("Slack post to %s failed: %s", channel, e)
            return NotificationResult(success=False, channel=channel, error=str(e))

        logger.info("Message posted to %s.", channel)
        return NotificationResult(success=True, channel=channel, timestamp=data.get("ts"))
