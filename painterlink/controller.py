"""SyncController — handles peer commands and pushes maps to the peer."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from painterlink.channel.base import CommandChannel
from painterlink.config import EXPORT_FORMAT, LINK_IDENTIFIER_KEY, LinkOptions
from painterlink.host import MapExporter, ProjectHost, ShaderHost
from painterlink.models import LinkConfig, MapExportConfig, MaterialBinding
from painterlink.paths import relative_to_workspace, same_location
from painterlink.protocol import (
    Command,
    LinkPayload,
    OpenedProjectInfo,
    ProtocolError,
    SetMaterialParams,
    dump_payload,
    parse_link_payload,
)
from painterlink.scheduler import ExportScheduler
from painterlink.state import LinkState, LinkStatus
from painterlink.timers import ThreadingTimer, TimerFactory

logger = logging.getLogger(__name__)


@dataclass
class LinkStatusReport:
    """Snapshot of the link for display."""

    status: LinkStatus
    peer_name: str | None = None
    materials: list[str] = field(default_factory=list)
    auto_link: bool = False
    pending_export: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "peer_name": self.peer_name,
            "materials": list(self.materials),
            "auto_link": self.auto_link,
            "pending_export": self.pending_export,
        }


class SyncController:
    """Orchestrates the link between the host and one peer.

    Inbound commands mutate the :class:`LinkState` and drive the host
    collaborators; exported maps go back to the peer through the channel.
    Every public entry point runs under one re-entrant lock shared with the
    :class:`ExportScheduler`, so timer callbacks never interleave with
    command handling.

    Parameters
    ----------
    project:
        Host project management.
    exporter:
        Host document structure and map export.
    shaders:
        Host shader instance management.
    channel:
        Channel to the peer.
    options:
        Link options; defaults when omitted.
    timer_factory:
        Creates the project-ready and scheduler timers.
    export_enabled_sink:
        Called with the linked flag whenever it changes (e.g. to enable a
        "send to peer" button).
    auto_link_enabled:
        Initial auto-link flag; ``options.auto_link`` when omitted.
    """

    def __init__(
        self,
        project: ProjectHost,
        exporter: MapExporter,
        shaders: ShaderHost,
        channel: CommandChannel,
        options: LinkOptions | None = None,
        *,
        timer_factory: TimerFactory = ThreadingTimer,
        export_enabled_sink: Callable[[bool], None] | None = None,
        auto_link_enabled: bool | None = None,
    ) -> None:
        self.project = project
        self.exporter = exporter
        self.shaders = shaders
        self.channel = channel
        self.options = options or LinkOptions()

        self._lock = threading.RLock()
        self._pending: LinkConfig | None = None
        self._init_timer = timer_factory()

        self.state = LinkState()
        if export_enabled_sink is not None:
            self.state.add_listener(export_enabled_sink)
            export_enabled_sink(self.state.is_linked)

        if auto_link_enabled is None:
            auto_link_enabled = self.options.auto_link
        self.scheduler = ExportScheduler(
            self.state,
            exporter,
            self.send_maps,
            self.options,
            timer_factory=timer_factory,
            lock=self._lock,
            enabled=auto_link_enabled,
        )

    # -- Inbound commands -----------------------------------------------------

    def handle_create_project(self, payload: dict[str, Any] | LinkPayload) -> None:
        """CREATE_PROJECT: create and save a project, then synchronize.

        Project creation may finish asynchronously, so synchronization runs
        on :meth:`on_project_ready` or after ``initDelayOnProjectCreation``,
        whichever comes first.
        """
        with self._lock:
            link = self._parse(Command.CREATE_PROJECT, payload)
            if link is None:
                return
            try:
                config = self.link_to_client(link)
                spec = config.project_spec
                if self.project.is_open():
                    self.project.close()
                self.project.create(
                    spec.mesh_url,
                    template=spec.template,
                    normal_map_format=spec.normal_map_format,
                )
                self.project.save(spec.url)
            except Exception:
                logger.exception("Failed to create project for %s", link.application_name)
                self.disconnect()
                return

            self._init_timer.start(
                self.options.init_delay_on_project_creation, self._on_init_timeout,
            )

    def handle_open_project(self, payload: dict[str, Any] | LinkPayload) -> None:
        """OPEN_PROJECT: open the requested project unless it already is."""
        with self._lock:
            link = self._parse(Command.OPEN_PROJECT, payload)
            if link is None:
                return
            try:
                config = self.link_to_client(link)
                already_open = self.is_already_open(config)
                if not already_open:
                    if self.project.is_open():
                        self.project.close()
                    self.project.open(config.project_spec.url)
                else:
                    logger.info("Project %s is already open", config.project_spec.url)
                self.init_synchronization(maps_needed=not already_open)
            except Exception:
                logger.exception("Failed to open project %s", link.project.url)
                self.disconnect()

    def handle_send_project_info(self, payload: dict[str, Any] | None = None) -> None:
        """SEND_PROJECT_INFO: report the link identifier of the open project."""
        with self._lock:
            try:
                if not self.project.is_open():
                    return
                settings = self.project.settings
                if not settings.contains(LINK_IDENTIFIER_KEY):
                    return
                info = OpenedProjectInfo(
                    link_identifier=settings.value(LINK_IDENTIFIER_KEY),
                    project_url=self.project.url(),
                )
                self.channel.send(Command.OPENED_PROJECT_INFO, dump_payload(info))
            except Exception:
                logger.debug("Project info unavailable", exc_info=True)

    # -- Link lifecycle -------------------------------------------------------

    def link_to_client(self, payload: LinkPayload) -> LinkConfig:
        """Hold the peer configuration until synchronization installs it.

        A new link attempt cancels any pending automatic or post-creation
        export and drops the current link, so nothing is exported against
        the previous peer's configuration in the meantime.
        """
        with self._lock:
            self._init_timer.stop()
            self.scheduler.cancel()
            previous = self.state.current_config()
            if previous is not None:
                logger.info("Dropping link with %s", previous.peer_name)
                self.state.reset()
            config = LinkConfig.from_payload(payload)
            self._pending = config
            logger.info("Linking with %s", config.peer_name)
            return config

    def is_already_open(self, config: LinkConfig) -> bool:
        """True if the open project is the one *config* refers to.

        Either the project URLs match or the link identifier persisted in
        the open project matches the requested one.
        """
        if not self.project.is_open():
            return False
        if same_location(self.project.url(), config.project_spec.url):
            return True
        settings = self.project.settings
        return (
            settings.contains(LINK_IDENTIFIER_KEY)
            and settings.value(LINK_IDENTIFIER_KEY) == config.link_identifier
        )

    def init_synchronization(self, maps_needed: bool = True) -> None:
        """Install the pending configuration and bring the peer up to date."""
        with self._lock:
            config = self._pending or self.state.current_config()
            if config is None:
                logger.warning("Nothing to synchronize: no peer linked")
                return
            config = self._associate_single_material(config)
            self._pending = None

            self.state.transition_to(LinkStatus.CONNECTED, config)
            self.project.settings.set_value(LINK_IDENTIFIER_KEY, config.link_identifier)
            logger.info("Linked with %s", config.peer_name)

            if maps_needed:
                self.send_maps()
            self.apply_resource_shaders()

    def on_project_ready(self) -> None:
        """Completion signal of project creation."""
        with self._lock:
            if not self._init_timer.is_active:
                return
            self._init_timer.stop()
            self._complete_creation()

    def disconnect(self) -> None:
        """Drop the link and cancel every pending export. Idempotent."""
        with self._lock:
            config = self.state.current_config() or self._pending
            if config is not None:
                logger.info("Disconnecting from %s", config.peer_name)
            self.scheduler.cancel()
            self._init_timer.stop()
            self._pending = None
            self.state.reset()

    # -- Map export -----------------------------------------------------------

    def send_maps(
        self,
        materials_to_send: list[str] | None = None,
        map_export_config: MapExportConfig | None = None,
    ) -> None:
        """Export maps and send their paths to the peer, one material at a time.

        Parameters
        ----------
        materials_to_send:
            Restrict the export to these texture sets; all when omitted.
        map_export_config:
            Export overrides (e.g. a degraded resolution).
        """
        with self._lock:
            if not self.state.is_linked:
                return
            config = self.state.current_config()
            try:
                names = sorted(ts.name for ts in self.exporter.document_structure())
                if materials_to_send is not None:
                    wanted = set(materials_to_send)
                    names = [name for name in names if name in wanted]

                for name in names:
                    binding = config.material_bindings.get(name)
                    if binding is None:
                        logger.warning("No remote material bound to %s, skipping", name)
                        continue
                    self._send_material(
                        config, name, binding, map_export_config or MapExportConfig(),
                    )
            except Exception:
                logger.exception("Failed to send maps to %s", config.peer_name)

    def send_selected_maps(self) -> None:
        """Send the selected texture set at full resolution."""
        with self._lock:
            name = self.exporter.selected_texture_set()
            if name is None:
                logger.info("No texture set selected")
                return
            self.send_maps([name])

    def apply_resource_shaders(self) -> None:
        """Instantiate the remote shader of every bound material on its texture set."""
        with self._lock:
            config = self.state.current_config()
            if config is None:
                return

            shaders: dict[str, dict[str, str]] = {}
            texture_sets: dict[str, dict[str, str]] = {}
            for name, binding in sorted(config.material_bindings.items()):
                shaders[name] = {"shader": binding.resource_shader, "shaderInstance": name}
                texture_sets[name] = {"shader": name}
            if not shaders:
                return

            try:
                self.shaders.shader_instances_from_object(
                    {"shaders": shaders, "texturesets": texture_sets},
                )
            except Exception as exc:
                logger.warning("Could not apply resource shaders: %s", exc)

    # -- Auto-link ------------------------------------------------------------

    def on_computation_status_changed(self, busy: bool) -> None:
        self.scheduler.on_computation_status_changed(busy)

    def set_auto_link_enabled(self, enabled: bool) -> None:
        self.scheduler.set_enabled(enabled)

    def status(self) -> LinkStatusReport:
        """Current link status."""
        with self._lock:
            config = self.state.current_config()
            return LinkStatusReport(
                status=self.state.status,
                peer_name=config.peer_name if config else None,
                materials=sorted(config.material_bindings) if config else [],
                auto_link=self.scheduler.enabled,
                pending_export=self.scheduler.has_pending,
            )

    # -- Internals ------------------------------------------------------------

    def _parse(self, command: Command, payload: Any) -> LinkPayload | None:
        try:
            return parse_link_payload(payload)
        except ProtocolError as exc:
            logger.error("Ignoring %s: %s", command.value, exc)
            return None

    def _on_init_timeout(self) -> None:
        with self._lock:
            self._complete_creation()

    def _complete_creation(self) -> None:
        if self._pending is None:
            return
        try:
            self.init_synchronization(maps_needed=True)
        except Exception:
            logger.exception("Failed to synchronize the new project")
            self.disconnect()

    def _associate_single_material(self, config: LinkConfig) -> LinkConfig:
        """Bind the only remote material to the only local texture set."""
        texture_sets = self.exporter.document_structure()
        if len(texture_sets) != 1 or len(config.material_bindings) != 1:
            return config
        local_name = texture_sets[0].name
        remote_name, binding = next(iter(config.material_bindings.items()))
        if remote_name != local_name:
            logger.info("Associating remote material %s with %s", remote_name, local_name)
        return config.model_copy(update={"material_bindings": {local_name: binding}})

    def _send_material(
        self,
        config: LinkConfig,
        name: str,
        binding: MaterialBinding,
        export_config: MapExportConfig,
    ) -> None:
        self.state.transition_to(LinkStatus.EXPORTING)
        try:
            stacks = self.exporter.export_document_maps(
                binding.export_preset,
                config.export_dir,
                EXPORT_FORMAT,
                export_config,
                [name],
            )
        finally:
            self.state.transition_to(LinkStatus.CONNECTED)

        params: dict[str, str] = {}
        for maps in stacks.values():
            for map_name, path in maps.items():
                prop = binding.map_properties.get(map_name)
                if prop is None:
                    logger.warning(
                        "Map %s of %s has no associated property, skipping", map_name, name,
                    )
                    continue
                params[prop] = relative_to_workspace(path, config.workspace_path)

        message = SetMaterialParams(material=binding.asset_path, params=params)
        self.channel.send(Command.SET_MATERIAL_PARAMS, dump_payload(message))
