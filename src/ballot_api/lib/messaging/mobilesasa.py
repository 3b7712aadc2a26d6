"""MobileSasa SMS provider.

Sends messages through the MobileSasa bulk SMS API with a bearer API key.
"""

import httpx
from loguru import logger

from ballot_api.core.logging import mask_phone
from ballot_api.lib.messaging.base import (
    BaseMessageSender,
    DeliveryResult,
    MessageDeliveryError,
    normalize_phone_number,
)

MOBILESASA_API_URL = "https://api.mobilesasa.com/v1/send"
DEFAULT_TIMEOUT = 10.0
DEFAULT_SENDER_ID = "MobiPoll"


class MobileSasaSender(BaseMessageSender):
    """MobileSasa HTTP provider."""

    def __init__(
        self,
        api_key: str,
        sender_id: str | None = None,
        *,
        api_url: str = MOBILESASA_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        country_code: str = "254",
    ) -> None:
        self._api_key = api_key
        self._sender_id = sender_id or DEFAULT_SENDER_ID
        self._api_url = api_url
        self._timeout = timeout
        self._country_code = country_code

    @property
    def provider_name(self) -> str:
        return "mobilesasa"

    async def _post(self, phone: str, message: str) -> None:
        """Submit one message.

        Raises:
            MessageDeliveryError: On transport or service errors.
        """
        payload = {
            "senderID": self._sender_id,
            "phone": normalize_phone_number(phone, self._country_code),
            "message": message,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise MessageDeliveryError("mobilesasa", "SMS request timed out") from e
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            raise MessageDeliveryError(
                "mobilesasa",
                f"Provider returned HTTP {e.response.status_code}: {detail}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise MessageDeliveryError("mobilesasa", "Connection to SMS provider failed") from e

        body = _json_or_empty(response)
        if body.get("status") is False:
            raise MessageDeliveryError("mobilesasa", str(body.get("message") or "SMS API request failed"))

    async def send(self, phone: str, message: str) -> DeliveryResult:
        if not phone:
            logger.error("SMS not sent: no phone number provided")
            return DeliveryResult(delivered=False, provider=self.provider_name, error="No phone number provided")
        try:
            await self._post(phone, message)
        except MessageDeliveryError as e:
            logger.warning("SMS delivery to {} failed: {}", mask_phone(phone), e.message)
            return DeliveryResult(delivered=False, provider=self.provider_name, error=e.message)
        logger.info("SMS sent to {}", mask_phone(phone))
        return DeliveryResult(delivered=True, provider=self.provider_name)


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_detail(response: httpx.Response) -> str:
    return str(_json_or_empty(response).get("message") or "SMS API request failed")
