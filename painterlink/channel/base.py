"""Abstract CommandChannel interface."""

from __future__ import annotations

import abc
import logging
from typing import Any, Callable

from painterlink.protocol import Command, ProtocolError, command_name, decode_message

logger = logging.getLogger(__name__)

CommandHandler = Callable[[dict[str, Any]], Any]
ConnectivityListener = Callable[[bool], None]


class CommandChannel(abc.ABC):
    """Base class for channels carrying named commands with JSON payloads.

    Subclasses implement the transport (:meth:`send`, :meth:`close`,
    :attr:`is_connected`); handler registration, inbound dispatch and
    connectivity notification are shared.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._listeners: list[ConnectivityListener] = []

    @property
    @abc.abstractmethod
    def is_connected(self) -> bool:
        """Return True while a peer is connected."""

    @abc.abstractmethod
    def send(self, command: Command | str, payload: dict[str, Any] | None = None) -> None:
        """Send *command* with *payload* to the peer."""

    @abc.abstractmethod
    def close(self) -> None:
        """Drop the connection."""

    def register_handler(self, command: Command | str, handler: CommandHandler) -> None:
        """Route inbound *command* to *handler* (replacing any previous one)."""
        self._handlers[command_name(command)] = handler

    def add_connectivity_listener(self, listener: ConnectivityListener) -> None:
        """Call *listener* with the new state whenever connectivity changes."""
        self._listeners.append(listener)

    def dispatch(self, command: Command | str, payload: dict[str, Any] | None = None) -> bool:
        """Hand an inbound command to its handler.

        Returns True if a handler was registered for the command.
        """
        name = command_name(command)
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("No handler for inbound command %s", name)
            return False
        handler(payload or {})
        return True

    def dispatch_raw(self, message: str | bytes) -> bool:
        """Decode a framed message and dispatch it.

        Malformed messages are logged and dropped.
        """
        try:
            name, payload = decode_message(message)
        except ProtocolError as exc:
            logger.error("Dropping inbound message: %s", exc)
            return False
        return self.dispatch(name, payload)

    def _notify_connectivity(self, connected: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(connected)
            except Exception:
                logger.exception("Connectivity listener failed")


