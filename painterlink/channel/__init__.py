"""Command channel — message-framed connection to the peer."""

from painterlink.channel.base import CommandChannel, CommandHandler, ConnectivityListener
from painterlink.channel.loopback import LoopbackChannel

__all__ = [
    "CommandChannel",
    "CommandHandler",
    "ConnectivityListener",
    "LoopbackChannel",
]
