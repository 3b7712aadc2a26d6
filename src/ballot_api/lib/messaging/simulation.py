"""Simulation sender used when no SMS credentials are configured.

Nothing is transmitted: the message is logged at WARNING level and handed
back to the caller for manual relay.
"""

from loguru import logger

from ballot_api.lib.messaging.base import BaseMessageSender, DeliveryResult


class SimulationSender(BaseMessageSender):
    """Surfaces messages instead of sending them."""

    @property
    def provider_name(self) -> str:
        return "simulation"

    @property
    def is_simulated(self) -> bool:
        return True

    async def send(self, phone: str, message: str) -> DeliveryResult:
        if not phone:
            return DeliveryResult(
                delivered=False,
                provider=self.provider_name,
                simulated=True,
                error="No phone number provided",
            )
        logger.warning("[SIMULATION SMS] To: {} | {}", phone, message)
        return DeliveryResult(
            delivered=True,
            provider=self.provider_name,
            simulated=True,
            relay_message=message,
        )
