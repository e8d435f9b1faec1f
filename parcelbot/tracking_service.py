"""
Tracking service.
Queries a single provider under a watchdog and notifies followers of new data.
"""

import asyncio
from typing import Awaitable, Callable, Optional
from loguru import logger

from parcelbot.config import BotConfig
from parcelbot.models import TrackingData
from parcelbot.providers.base import NotFoundError, Provider, ProviderError

# (provider name, shipment number, fresh data)
FollowerNotifier = Callable[[str, str, TrackingData], Awaitable[None]]


class ProviderTimeoutError(ProviderError):
    """Raised when a provider does not answer within the watchdog timeout."""
    pass


class TrackingService:
    """
    Shared-nothing query service used by every command invocation.

    The optional notifier receives every successful lookup so that users
    following the same shipment can be told about changes.
    """

    def __init__(self, config: BotConfig, notifier: Optional[FollowerNotifier] = None):
        self.config = config
        self.notifier = notifier

    async def invoke_provider_and_notify_followers(
        self,
        provider: Provider,
        shipment_number: str,
    ) -> TrackingData:
        """
        Query one provider for a shipment number.

        Args:
            provider: Provider to query
            shipment_number: Number as typed by the user

        Returns:
            TrackingData from the provider

        Raises:
            NotFoundError: provider has no record of the number
            ProviderTimeoutError: provider exceeded the configured timeout
            Exception: anything else the provider raised
        """
        name = provider.get_name()
        timeout = self.config.provider_timeout or None

        try:
            data = await asyncio.wait_for(provider.track(shipment_number), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{name} timed out for {shipment_number}")
            raise ProviderTimeoutError(f"timed out after {self.config.provider_timeout}s")
        except NotFoundError:
            logger.info(f"{name}: {shipment_number} not found")
            raise
        except Exception as e:
            logger.error(f"{name} lookup failed for {shipment_number}: {e}")
            raise

        logger.info(f"{name}: {shipment_number} has {len(data.steps)} step(s)")

        if self.notifier:
            await self._notify(name, shipment_number, data, timeout)

        return data

    async def _notify(self, name: str, shipment_number: str, data: TrackingData, timeout: Optional[int]):
        """Tell followers about fresh data; never fails or stalls the query."""
        try:
            await asyncio.wait_for(self.notifier(name, shipment_number, data), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Follower notification for {name}/{shipment_number} "
                f"timed out after {self.config.provider_timeout}s"
            )
        except Exception as e:
            logger.error(f"Follower notification failed for {name}/{shipment_number}: {e}")
