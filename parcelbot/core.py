"""
Core bot service that wires all components together.
This is the main entry point for the bot.
"""

import asyncio
import signal
import sys
from typing import Optional
from loguru import logger

from parcelbot import __version__
from parcelbot.config import BotConfig, get_config, init_config
from parcelbot.logging_config import setup_logging
from parcelbot.commands import CommandDispatcher, FollowCommand, HelpCommand, TrackCommand
from parcelbot.communication import DeliveryError, TelegramClient
from parcelbot.providers import ProviderRegistry, build_registry
from parcelbot.tracking_service import FollowerNotifier, TrackingService


class ParcelBot:
    """
    Main bot service class.

    Orchestrates:
    - Provider registry and tracking service
    - Telegram long polling
    - Command dispatch, one task per incoming update
    """

    MAX_BACKOFF = 60  # seconds

    def __init__(
        self,
        config: Optional[BotConfig] = None,
        registry: Optional[ProviderRegistry] = None,
        notifier: Optional[FollowerNotifier] = None,
        client: Optional[TelegramClient] = None,
    ):
        self.config = config or get_config()

        self.registry = registry if registry is not None else build_registry(self.config)
        self.tracking_service = TrackingService(self.config, notifier=notifier)
        self.client = client or TelegramClient(self.config)

        self.dispatcher = CommandDispatcher(self.client, self.config.allowed_chat_ids)
        self.dispatcher.register(TrackCommand(self.registry, self.tracking_service, self.client))
        self.dispatcher.register(FollowCommand(self.client))
        self.dispatcher.register(HelpCommand(self.dispatcher, self.client), "start")

        # State
        self._running = False
        self._offset: Optional[int] = None
        self._consecutive_errors = 0
        self._handlers: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._running

    def _spawn(self, coro, name: str):
        task = asyncio.create_task(coro, name=name)
        self._handlers.add(task)
        task.add_done_callback(self._handlers.discard)

    async def _handle_callback_query(self, query: dict):
        """Acknowledge a button press and run its data as a command."""
        try:
            await self.client.answer_callback_query(query["id"])
        except DeliveryError as e:
            logger.debug(f"Failed to answer callback query: {e}")

        message = query.get("message")
        data = query.get("data")
        if not message or not data:
            return

        await self.dispatcher.dispatch(data, message["chat"]["id"], message["message_id"])

    def handle_update(self, update: dict):
        """Route one Bot API update to the dispatcher in its own task."""
        update_id = update["update_id"]
        self._offset = update_id + 1

        message = update.get("message")
        if message and message.get("text"):
            self._spawn(
                self.dispatcher.dispatch(message["text"], message["chat"]["id"], message["message_id"]),
                name=f"update:{update_id}",
            )
            return

        query = update.get("callback_query")
        if query:
            self._spawn(self._handle_callback_query(query), name=f"update:{update_id}")

    def _get_backoff(self) -> int:
        """Exponential backoff on polling errors: 1s -> 2s -> 4s ... (max 60s)."""
        return min(2 ** (self._consecutive_errors - 1), self.MAX_BACKOFF)

    async def poll_once(self):
        """Fetch one batch of updates and dispatch them."""
        updates = await self.client.get_updates(self._offset)
        self._consecutive_errors = 0

        for update in updates:
            self.handle_update(update)

    async def start(self):
        """Start the bot and poll until stopped."""
        logger.info(f"Starting parcelbot v{__version__}")

        # Validate configuration
        errors = []
        for problem in self.config.validate():
            if problem.startswith("Warning"):
                logger.warning(problem)
            else:
                logger.error(f"Config error: {problem}")
                errors.append(problem)
        if errors:
            raise RuntimeError("Invalid configuration")

        me = await self.client.get_me()
        logger.info(
            f"Logged in as @{me.get('username')} with providers: "
            f"{', '.join(self.registry.names()) or 'none'}"
        )

        self._running = True
        while self._running:
            try:
                await self.poll_once()

            except asyncio.CancelledError:
                break
            except DeliveryError as e:
                self._consecutive_errors += 1
                delay = self._get_backoff()
                logger.error(f"Polling error: {e} (retrying in {delay}s)")
                await asyncio.sleep(delay)

    async def stop(self):
        """Stop polling and wait for running commands."""
        logger.info("Stopping bot...")
        self._running = False

        if self._handlers:
            logger.info(f"Waiting for {len(self._handlers)} running command(s)")
            await asyncio.gather(*self._handlers, return_exceptions=True)

        await self.client.close()
        logger.info("Bot stopped")

    def run(self):
        """Run the bot (blocking)."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        main_task = loop.create_task(self.start())

        def signal_handler():
            logger.info("Received shutdown signal")
            main_task.cancel()

        try:
            if sys.platform != "win32":
                loop.add_signal_handler(signal.SIGTERM, signal_handler)
                loop.add_signal_handler(signal.SIGINT, signal_handler)
        except NotImplementedError:
            pass

        try:
            loop.run_until_complete(main_task)
        except (KeyboardInterrupt, asyncio.CancelledError):
            logger.info("Shutdown requested")
        finally:
            loop.run_until_complete(self.stop())
            loop.close()


def run_bot(config_file: Optional[str] = None):
    """
    Run parcelbot.

    Args:
        config_file: Path to configuration file
    """
    # Initialize configuration
    config = init_config(config_file)

    # Setup logging
    setup_logging(config, console=True)

    bot = ParcelBot(config)
    bot.run()
