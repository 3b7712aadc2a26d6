"""Abstract delivery channel for one-time codes and notices."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class DeliveryResult:
    """Outcome of a send attempt.

    ``simulated`` results were never transmitted; ``relay_message`` then holds
    the text an operator must pass on manually. A failed real send never
    carries the text.
    """

    delivered: bool
    provider: str
    simulated: bool = False
    relay_message: str | None = None
    error: str | None = None


class MessageDeliveryError(Exception):
    """Raised by providers on transport or service errors.

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


def normalize_phone_number(phone: str, country_code: str = "254") -> str:
    """Convert a phone number to international digits without ``+``.

    Local numbers (``07XX...``/``01XX...``) get the country code in place of
    the leading zero; numbers already carrying the code pass through.

    Args:
        phone: Phone number as entered.
        country_code: Calling code for local numbers.

    Returns:
        Digits only.
    """
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("0"):
        return country_code + digits[1:]
    return digits


class BaseMessageSender(ABC):
    """Delivery channel interface. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider."""

    @property
    def is_simulated(self) -> bool:
        """Whether messages are surfaced for manual relay instead of transmitted."""
        return False

    @abstractmethod
    async def send(self, phone: str, message: str) -> DeliveryResult:
        """Deliver ``message`` to ``phone``.

        Implementations report failures through the result instead of raising,
        so a failed delivery never aborts the caller's operation.
        """
