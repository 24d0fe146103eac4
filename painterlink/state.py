"""LinkState — finite-state machine of the peer link."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from painterlink.models import LinkConfig

logger = logging.getLogger(__name__)


class LinkStatus(str, Enum):
    """States of the link. ``EXPORTING`` is a sub-state of ``CONNECTED``."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    EXPORTING = "exporting"


# Allowed transitions: source -> targets
_TRANSITIONS: dict[LinkStatus, set[LinkStatus]] = {
    LinkStatus.DISCONNECTED: {LinkStatus.DISCONNECTED, LinkStatus.CONNECTED},
    LinkStatus.CONNECTED: {
        LinkStatus.CONNECTED, LinkStatus.EXPORTING, LinkStatus.DISCONNECTED,
    },
    LinkStatus.EXPORTING: {LinkStatus.CONNECTED, LinkStatus.DISCONNECTED},
}

LinkedListener = Callable[[bool], None]


class LinkStateError(Exception):
    """Raised on a transition the link state machine does not allow."""


class LinkState:
    """Holds the link status and the live peer configuration.

    The configuration exists iff the status is not ``DISCONNECTED``. It is
    installed when entering ``CONNECTED`` and dropped when entering
    ``DISCONNECTED``. Listeners are called with the new ``is_linked`` value
    after every transition that changes it.
    """

    def __init__(self) -> None:
        self._status = LinkStatus.DISCONNECTED
        self._config: LinkConfig | None = None
        self._linked = False
        self._listeners: list[LinkedListener] = []

    @property
    def status(self) -> LinkStatus:
        return self._status

    @property
    def is_linked(self) -> bool:
        return self._linked

    @property
    def is_exporting(self) -> bool:
        return self._status is LinkStatus.EXPORTING

    def current_config(self) -> LinkConfig | None:
        """The live peer configuration, or None when disconnected."""
        return self._config

    def add_listener(self, listener: LinkedListener) -> None:
        """Call *listener* with ``is_linked`` whenever it changes."""
        self._listeners.append(listener)

    def transition_to(
        self,
        status: LinkStatus,
        config: LinkConfig | None = None,
    ) -> None:
        """Move to *status*.

        Parameters
        ----------
        status:
            Target state.
        config:
            Configuration to install; only accepted when entering
            ``CONNECTED`` and required when coming from ``DISCONNECTED``.

        Raises
        ------
        LinkStateError
            If the transition is not allowed or the config is missing.
        """
        status = LinkStatus(status)
        if status not in _TRANSITIONS[self._status]:
            raise LinkStateError(
                f"Cannot go from {self._status.value} to {status.value}"
            )
        if config is not None and status is not LinkStatus.CONNECTED:
            raise LinkStateError(f"A config cannot be installed in {status.value}")
        if (
            status is LinkStatus.CONNECTED
            and self._status is LinkStatus.DISCONNECTED
            and config is None
        ):
            raise LinkStateError("Connecting requires a link config")

        if config is not None:
            self._config = config
        if status is LinkStatus.DISCONNECTED:
            self._config = None

        previous = self._status
        self._status = status
        if previous is not status:
            logger.debug("Link state %s -> %s", previous.value, status.value)
        self._recompute_linked()

    def reset(self) -> None:
        """Drop the configuration and go back to ``DISCONNECTED``."""
        self.transition_to(LinkStatus.DISCONNECTED)

    def _recompute_linked(self) -> None:
        linked = self._status in (LinkStatus.CONNECTED, LinkStatus.EXPORTING)
        if linked == self._linked:
            return
        self._linked = linked
        for listener in list(self._listeners):
            try:
                listener(linked)
            except Exception:
                logger.warning("Link listener %r failed", listener, exc_info=True)
