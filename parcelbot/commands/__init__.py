"""
Chat commands and the dispatcher that routes messages to them.
"""

from parcelbot.commands.base import Command, CommandError, NoProvidersError, UsageError
from parcelbot.commands.dispatcher import CommandDispatcher
from parcelbot.commands.follow import FollowCommand
from parcelbot.commands.help import HelpCommand
from parcelbot.commands.track import TrackCommand

__all__ = [
    "Command",
    "CommandError",
    "UsageError",
    "NoProvidersError",
    "CommandDispatcher",
    "FollowCommand",
    "HelpCommand",
    "TrackCommand",
]
