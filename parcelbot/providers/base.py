"""
Provider base class and the read-only provider registry.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional

from parcelbot.models import TrackingData


class ProviderError(Exception):
    """Base exception for tracking provider errors."""
    pass


class NotFoundError(ProviderError):
    """Raised when a provider has no record of the shipment number."""

    def __init__(self, message: str = "shipment not found"):
        super().__init__(message)


class Provider(ABC):
    """Base class for tracking providers."""

    @abstractmethod
    def get_name(self) -> str:
        """Get the provider name shown to users."""
        pass

    @abstractmethod
    def matches_number(self, shipment_number: str) -> bool:
        """Whether the shipment number looks like one this provider issues."""
        pass

    @abstractmethod
    async def track(self, shipment_number: str) -> TrackingData:
        """
        Get tracking information for a shipment.

        Raises:
            NotFoundError: the provider does not know the number
            ProviderError: any other lookup failure
        """
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.get_name()!r}>"


class ProviderRegistry:
    """
    Immutable, ordered set of providers created at startup.

    Passed explicitly to whatever needs it so tests can build one from fakes.
    """

    def __init__(self, providers: Iterable[Provider] = ()):
        self._providers: tuple[Provider, ...] = tuple(providers)

        names = [p.get_name() for p in self._providers]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate provider names: {', '.join(sorted(duplicates))}")

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def names(self) -> list[str]:
        return [p.get_name() for p in self._providers]

    def get(self, name: str) -> Optional[Provider]:
        """Get a provider by name."""
        for provider in self._providers:
            if provider.get_name() == name:
                return provider
        return None

    def select(self, shipment_number: str) -> list[Provider]:
        """Providers recognizing the number, in registration order."""
        return [p for p in self._providers if p.matches_number(shipment_number)]
