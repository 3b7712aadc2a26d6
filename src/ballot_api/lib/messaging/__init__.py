"""Messaging library public API.

Provides the delivery channel interface, the MobileSasa provider, the
simulation fallback, and provider selection.
"""

from ballot_api.lib.messaging.base import (
    BaseMessageSender,
    DeliveryResult,
    MessageDeliveryError,
    normalize_phone_number,
)
from ballot_api.lib.messaging.mobilesasa import MobileSasaSender
from ballot_api.lib.messaging.simulation import SimulationSender


def create_message_sender(
    api_key: str | None,
    sender_id: str | None = None,
    *,
    api_url: str | None = None,
    timeout: float | None = None,
    country_code: str = "254",
) -> BaseMessageSender:
    """Select the delivery provider for the configured credentials.

    Args:
        api_key: MobileSasa API key; blank or None selects simulation mode.
        sender_id: Sender ID shown to recipients.
        api_url: Override for the send endpoint.
        timeout: Request timeout in seconds.
        country_code: Calling code for local phone numbers.

    Returns:
        A MobileSasaSender, or a SimulationSender when credentials are absent.
    """
    if not api_key or not api_key.strip():
        return SimulationSender()
    kwargs: dict = {"country_code": country_code}
    if api_url:
        kwargs["api_url"] = api_url
    if timeout is not None:
        kwargs["timeout"] = timeout
    return MobileSasaSender(api_key.strip(), sender_id, **kwargs)


__all__ = [
    "BaseMessageSender",
    "DeliveryResult",
    "MessageDeliveryError",
    "MobileSasaSender",
    "SimulationSender",
    "create_message_sender",
    "normalize_phone_number",
]
