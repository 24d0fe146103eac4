"""Pydantic models for the link session.

A ``LinkConfig`` is the normalized, host-side view of a link request
received from the peer. It is built from a validated ``LinkPayload``
(see :mod:`painterlink.protocol`) and replaced wholesale on each new link.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from painterlink.paths import join_workspace, normalize_path


class MaterialBinding(BaseModel):
    """How one local texture set maps to a remote material."""

    model_config = ConfigDict(populate_by_name=True)

    asset_path: str = Field(alias="assetPath")
    """Remote asset path of the material."""

    export_preset: str = Field(alias="exportPreset")
    """Export preset used to generate the maps."""

    map_properties: dict[str, str] = Field(
        default_factory=dict, alias="spToUnityProperties",
    )
    """Exported map name -> remote material property."""

    resource_shader: str = Field("", alias="resourceShader")
    """Remote shader id to instantiate for this material."""


class ProjectSpec(BaseModel):
    """Project the peer wants opened or created."""

    model_config = ConfigDict(populate_by_name=True)

    mesh_url: str = Field("", alias="meshUrl")
    normal_map_format: str = Field("OpenGL", alias="normal")
    template: str = ""
    url: str
    """Where the local project lives (or will be saved)."""


class LinkConfig(BaseModel):
    """Normalized configuration of the current peer."""

    peer_name: str
    export_path: str
    workspace_path: str
    link_identifier: str
    material_bindings: dict[str, MaterialBinding] = Field(default_factory=dict)
    project_spec: ProjectSpec

    @property
    def export_dir(self) -> str:
        """Absolute directory the maps are exported to."""
        return join_workspace(self.workspace_path, self.export_path)

    @classmethod
    def from_payload(cls, payload: Any) -> LinkConfig:
        """Build a config from a validated ``LinkPayload``."""
        return cls(
            peer_name=payload.application_name,
            export_path=normalize_path(payload.export_path),
            workspace_path=normalize_path(payload.workspace_path),
            link_identifier=payload.link_identifier,
            material_bindings=dict(payload.materials),
            project_spec=payload.project,
        )


class Resolution(BaseModel):
    """Width and height of a texture set, in pixels."""

    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def area(self) -> int:
        return self.width * self.height


class MapExportConfig(BaseModel):
    """Per-call overrides handed to the map exporter."""

    resolution: Optional[Resolution] = None
    """Export resolution; ``None`` keeps the texture set's own."""


class TextureSet(BaseModel):
    """A texture set as listed by the host document structure."""

    name: str
    selected: bool = False
