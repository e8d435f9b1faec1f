"""Tests for the tracking service."""

import asyncio

import pytest

from conftest import FakeProvider, step
from parcelbot.config import BotConfig
from parcelbot.providers.base import NotFoundError
from parcelbot.tracking_service import ProviderTimeoutError, TrackingService


class TestTrackingService:
    """Tests for TrackingService."""

    @pytest.mark.asyncio
    async def test_returns_provider_data(self, config):
        """Test a successful lookup is passed through."""
        service = TrackingService(config)
        provider = FakeProvider("A", steps=[step(10, "delivered")])

        data = await service.invoke_provider_and_notify_followers(provider, "PKG1")

        assert data.provider_name == "A"
        assert data.latest_step.message == "delivered"
        assert provider.calls == ["PKG1"]

    @pytest.mark.asyncio
    async def test_notifies_followers_on_success(self, config):
        """Test the follower notifier receives every successful lookup."""
        notified = []

        async def notifier(provider_name, shipment_number, data):
            notified.append((provider_name, shipment_number, len(data.steps)))

        service = TrackingService(config, notifier=notifier)
        await service.invoke_provider_and_notify_followers(
            FakeProvider("A", steps=[step(1, "x")]), "PKG1"
        )

        assert notified == [("A", "PKG1", 1)]

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_fail_query(self, config):
        """Test follower notification errors are logged, not raised."""

        async def notifier(provider_name, shipment_number, data):
            raise RuntimeError("database gone")

        service = TrackingService(config, notifier=notifier)
        data = await service.invoke_provider_and_notify_followers(FakeProvider("A"), "PKG1")

        assert data.shipment_number == "PKG1"

    @pytest.mark.asyncio
    async def test_not_found_skips_notifier(self, config):
        """Test not found propagates and nobody is notified."""
        notified = []

        async def notifier(*args):
            notified.append(args)

        service = TrackingService(config, notifier=notifier)

        with pytest.raises(NotFoundError):
            await service.invoke_provider_and_notify_followers(
                FakeProvider("A", error=NotFoundError()), "PKG1"
            )

        assert notified == []

    @pytest.mark.asyncio
    async def test_watchdog_timeout(self):
        """Test a hanging provider is cut off after the configured timeout."""
        service = TrackingService(BotConfig(provider_timeout=1))

        with pytest.raises(ProviderTimeoutError, match="timed out after 1s"):
            await service.invoke_provider_and_notify_followers(
                FakeProvider("Slow", gate=asyncio.Event()), "PKG1"
            )

    @pytest.mark.asyncio
    async def test_zero_timeout_disables_watchdog(self):
        """Test provider_timeout=0 waits as long as the provider needs."""
        gate = asyncio.Event()
        service = TrackingService(BotConfig(provider_timeout=0))

        task = asyncio.create_task(
            service.invoke_provider_and_notify_followers(FakeProvider("A", gate=gate), "PKG1")
        )
        await asyncio.sleep(0.05)
        assert not task.done()

        gate.set()
        data = await task
        assert data.provider_name == "A"

    @pytest.mark.asyncio
    async def test_hanging_notifier_is_cut_off(self):
        """Test a notifier that never returns does not hold up the lookup."""

        async def notifier(provider_name, shipment_number, data):
            await asyncio.Event().wait()

        service = TrackingService(BotConfig(provider_timeout=1), notifier=notifier)

        data = await asyncio.wait_for(
            service.invoke_provider_and_notify_followers(
                FakeProvider("A", steps=[step(10, "delivered")]), "PKG1"
            ),
            timeout=3,
        )

        assert data.latest_step.message == "delivered"
