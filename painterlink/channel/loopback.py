"""LoopbackChannel — in-memory channel, always available."""

from __future__ import annotations

import logging
from typing import Any

from painterlink.channel.base import CommandChannel
from painterlink.protocol import Command, command_name, encode_message

logger = logging.getLogger(__name__)


class LoopbackChannel(CommandChannel):
    """In-memory channel.

    Outbound commands are recorded (and framed) instead of being written
    to a socket; inbound commands are injected with :meth:`deliver` or
    :meth:`deliver_raw`. Useful to embed the link in another transport
    and for testing.
    """

    def __init__(self, *, connected: bool = False) -> None:
        super().__init__()
        self._connected = connected
        self._sent: list[tuple[str, dict[str, Any]]] = []
        self._frames: list[str] = []

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        """Simulate a peer connecting."""
        if not self._connected:
            self._connected = True
            logger.info("Peer connected")
            self._notify_connectivity(True)

    def close(self) -> None:
        """Simulate the peer going away."""
        if self._connected:
            self._connected = False
            logger.info("Peer disconnected")
            self._notify_connectivity(False)

    def send(self, command: Command | str, payload: dict[str, Any] | None = None) -> None:
        name = command_name(command)
        if not self._connected:
            logger.debug("Channel closed, dropping %s", name)
            return
        self._sent.append((name, dict(payload or {})))
        self._frames.append(encode_message(name, payload))

    def deliver(self, command: Command | str, payload: dict[str, Any] | None = None) -> bool:
        """Inject an inbound command."""
        return self.dispatch(command, payload)

    def deliver_raw(self, message: str | bytes) -> bool:
        """Inject an inbound framed message."""
        return self.dispatch_raw(message)

    @property
    def sent(self) -> list[tuple[str, dict[str, Any]]]:
        """Outbound ``(command, payload)`` pairs, oldest first."""
        return list(self._sent)

    @property
    def frames(self) -> list[str]:
        """Outbound messages as framed on the wire."""
        return list(self._frames)

    def sent_commands(self, command: Command | str) -> list[dict[str, Any]]:
        """Payloads of every outbound *command*."""
        name = command_name(command)
        return [payload for sent_name, payload in self._sent if sent_name == name]

    def clear(self) -> None:
        """Forget recorded outbound commands."""
        self._sent.clear()
        self._frames.clear()
