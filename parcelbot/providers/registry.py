"""
Builds the provider registry from configuration.
"""

from loguru import logger

from parcelbot.config import BotConfig
from parcelbot.providers.base import ProviderRegistry
from parcelbot.providers.carriers import FedExProvider, UPSProvider


def build_registry(config: BotConfig) -> ProviderRegistry:
    """Register every carrier whose credentials are configured."""
    providers = []

    # FedEx
    if config.fedex_client_id and config.fedex_client_secret:
        providers.append(FedExProvider(
            client_id=config.fedex_client_id,
            client_secret=config.fedex_client_secret,
        ))
        logger.info("FedEx API configured")

    # UPS
    if config.ups_client_id and config.ups_client_secret:
        providers.append(UPSProvider(
            client_id=config.ups_client_id,
            client_secret=config.ups_client_secret,
        ))
        logger.info("UPS API configured")

    if not providers:
        logger.warning("No tracking providers configured")

    return ProviderRegistry(providers)
