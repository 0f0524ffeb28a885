"""
Simulated QRIS payment confirmation.

There is no payment gateway behind this: confirmation waits a short delay
and succeeds at random, so that checkout flows can be exercised end to end.
"""
import asyncio
import logging
import random
from typing import Optional

from kasir.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

QRIS_PAYLOAD = (
    "00020101021226580014ID.CO.QRIS.WWW0215ID20232024567890303UME51440014ID.CO.QRIS.WWW"
    "0215ID20232024567890520454995802ID5914TOKO PERLENGKAPAN BAYI6007JAKARTA61051234562070703A0163044B2A"
)


class QrisPaymentSimulator:
    """Stand-in for a QRIS gateway."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        settings = settings or get_settings()
        self.success_rate = settings.qris_success_rate
        self.delay = settings.qris_confirmation_delay
        self.timeout = settings.qris_timeout
        self.rng = rng or random.Random()

    def qr_payload(self) -> str:
        """Static merchant payload rendered as the QR code."""
        return QRIS_PAYLOAD

    async def confirm(self, amount: int) -> bool:
        """Wait for the (simulated) customer payment; False on decline or timeout."""
        try:
            return await asyncio.wait_for(self._check(amount), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"QRIS payment of {amount} timed out after {self.timeout}s")
            return False

    async def _check(self, amount: int) -> bool:
        await asyncio.sleep(self.delay)
        approved = self.rng.random() < self.success_rate
        logger.info(f"QRIS payment of {amount} {'approved' if approved else 'declined'}")
        return approved
