"""painterlink — live link between a texture painting tool and a game engine editor."""

__version__ = "1.0.0"

from painterlink.channel.base import CommandChannel
from painterlink.channel.loopback import LoopbackChannel
from painterlink.config import LinkOptions, load_options, save_options
from painterlink.controller import LinkStatusReport, SyncController
from painterlink.host import MapExporter, ProjectHost, ProjectSettings, ShaderHost
from painterlink.models import (
    LinkConfig,
    MapExportConfig,
    MaterialBinding,
    ProjectSpec,
    Resolution,
    TextureSet,
)
from painterlink.plugin import PainterLink
from painterlink.protocol import Command, LinkPayload, ProtocolError
from painterlink.scheduler import ExportScheduler
from painterlink.state import LinkState, LinkStateError, LinkStatus
from painterlink.timers import ThreadingTimer, Timer

__all__ = [
    "__version__",
    # Facade
    "PainterLink",
    # Core
    "ExportScheduler",
    "LinkState",
    "LinkStateError",
    "LinkStatus",
    "LinkStatusReport",
    "SyncController",
    # Protocol
    "Command",
    "CommandChannel",
    "LinkPayload",
    "LoopbackChannel",
    "ProtocolError",
    # Models
    "LinkConfig",
    "MapExportConfig",
    "MaterialBinding",
    "ProjectSpec",
    "Resolution",
    "TextureSet",
    # Host collaborators
    "MapExporter",
    "ProjectHost",
    "ProjectSettings",
    "ShaderHost",
    # Configuration
    "LinkOptions",
    "load_options",
    "save_options",
    # Timers
    "ThreadingTimer",
    "Timer",
]
