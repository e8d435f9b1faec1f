"""
Tracking providers.
Each provider recognizes its own number formats and queries one carrier.
"""

from parcelbot.providers.base import NotFoundError, Provider, ProviderError, ProviderRegistry
from parcelbot.providers.carriers import FedExProvider, UPSProvider
from parcelbot.providers.registry import build_registry

__all__ = [
    "Provider",
    "ProviderRegistry",
    "ProviderError",
    "NotFoundError",
    "FedExProvider",
    "UPSProvider",
    "build_registry",
]
