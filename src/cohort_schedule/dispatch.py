"""Outbound notification transports.

Channel A is transactional email through the Resend HTTP API; channel B is a
WhatsApp Cloud API template message. Each send reports True/False and never
raises: non-2xx responses, timeouts and missing credentials are all False.
Nothing here retries.
"""

import asyncio

import aiohttp

from cohort_schedule.config import EngineConfig
from cohort_schedule.logging import get_logger

logger = get_logger(__name__)


class NotificationDispatcher:
    """Sends one message over one channel and reports the outcome."""

    def __init__(
        self, config: EngineConfig, session: aiohttp.ClientSession | None = None
    ) -> None:
        self.config = config
        self._session = session
        self._own_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=config.http_timeout_seconds)

    async def __aenter__(self) -> "NotificationDispatcher":
        if self._own_session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._own_session and self._session:
            await self._session.close()
            self._session = None

    @property
    def email_configured(self) -> bool:
        return bool(self.config.resend_api_key)

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.config.whatsapp_phone_number_id and self.config.whatsapp_access_token)

    async def _post(self, channel: str, url: str, token: str, payload: dict, to: str) -> bool:
        if self._session is None:
            logger.error("dispatcher_not_open", channel=channel, to=to)
            return False
        try:
            async with self._session.post(
                url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            ) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    logger.warning(
                        "notification_rejected",
                        channel=channel,
                        to=to,
                        status=resp.status,
                        body=body[:300],
                    )
                    return False
                logger.debug("notification_sent", channel=channel, to=to)
                return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("notification_error", channel=channel, to=to, error=str(e))
            return False

    async def send_email(self, to: str, subject: str, html: str) -> bool:
        """Send one email (channel A).

        Returns:
            True if the provider accepted the message.
        """
        if not self.email_configured:
            logger.info("email_not_configured", to=to, subject=subject)
            return False
        payload = {
            "from": self.config.email_from,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        return await self._post(
            "email", self.config.resend_api_url, self.config.resend_api_key, payload, to
        )

    async def send_whatsapp(self, to_phone: str, template_name: str, params: list[str]) -> bool:
        """Send one WhatsApp template message (channel B).

        Args:
            to_phone: Normalized international number without "+".
            template_name: Approved template name.
            params: Positional body parameters ({{1}}, {{2}}, ...).
        """
        if not self.whatsapp_configured:
            logger.info("whatsapp_not_configured", to=to_phone, template=template_name)
            return False
        template: dict = {
            "name": template_name,
            "language": {"code": self.config.whatsapp_template_language},
        }
        if params:
            template["components"] = [
                {
                    "type": "body",
                    "parameters": [{"type": "text", "text": value} for value in params],
                }
            ]
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to_phone,
            "type": "template",
            "template": template,
        }
        url = f"{self.config.whatsapp_api_url.rstrip('/')}/{self.config.whatsapp_phone_number_id}/messages"
        return await self._post(
            "whatsapp", url, self.config.whatsapp_access_token, payload, to_phone
        )
