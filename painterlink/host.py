"""Abstract interfaces of the authoring-tool collaborators.

The link never touches the host application directly; a plugin adapts
the host's project, export and shader APIs to these classes.
"""

from __future__ import annotations

import abc
from typing import Any

from painterlink.models import MapExportConfig, Resolution, TextureSet


class ProjectSettings(abc.ABC):
    """Key/value settings stored inside the open project."""

    @abc.abstractmethod
    def set_value(self, key: str, value: Any) -> None:
        """Store *value* under *key*."""

    @abc.abstractmethod
    def value(self, key: str, default: Any = None) -> Any:
        """Return the value stored under *key*, or *default*."""

    @abc.abstractmethod
    def contains(self, key: str) -> bool:
        """Return True if *key* is stored."""


class ProjectHost(abc.ABC):
    """Project management of the authoring tool."""

    @abc.abstractmethod
    def is_open(self) -> bool:
        """Return True if a project is currently open."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the open project."""

    @abc.abstractmethod
    def create(
        self,
        mesh_url: str,
        template: str = "",
        normal_map_format: str = "OpenGL",
    ) -> None:
        """Create a new project from a mesh.

        Creation may complete asynchronously; hosts able to signal it
        should call :meth:`painterlink.plugin.PainterLink.project_ready`.
        """

    @abc.abstractmethod
    def save(self, url: str) -> None:
        """Save the open project to *url*."""

    @abc.abstractmethod
    def open(self, url: str) -> None:
        """Open the project stored at *url*."""

    @abc.abstractmethod
    def url(self) -> str:
        """URL of the open project."""

    @property
    @abc.abstractmethod
    def settings(self) -> ProjectSettings:
        """Settings of the open project."""


class MapExporter(abc.ABC):
    """Document structure and map export of the authoring tool."""

    @abc.abstractmethod
    def document_structure(self) -> list[TextureSet]:
        """List the texture sets of the open project."""

    @abc.abstractmethod
    def texture_set_resolution(self, name: str) -> Resolution:
        """Resolution of the texture set *name*."""

    @abc.abstractmethod
    def export_document_maps(
        self,
        preset: str,
        export_dir: str,
        file_format: str,
        config: MapExportConfig,
        materials: list[str],
    ) -> dict[str, dict[str, str]]:
        """Export maps of *materials* with *preset* into *export_dir*.

        Returns
        -------
        dict
            Stack name -> {map name -> absolute output path}.
        """

    def selected_texture_set(self) -> str | None:
        """Name of the selected texture set, if any."""
        for texture_set in self.document_structure():
            if texture_set.selected:
                return texture_set.name
        return None


class ShaderHost(abc.ABC):
    """Shader instance management of the authoring tool."""

    @abc.abstractmethod
    def shader_instances_from_object(self, descriptor: dict[str, Any]) -> None:
        """Create shader instances and assign them to texture sets."""
