"""Shared fakes for the host collaborators and timers.

All tests run offline; timers only fire when a test calls ``fire()``.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest

from painterlink.channel.loopback import LoopbackChannel
from painterlink.config import LinkOptions
from painterlink.controller import SyncController
from painterlink.host import MapExporter, ProjectHost, ProjectSettings, ShaderHost
from painterlink.models import MapExportConfig, Resolution, TextureSet

WORKSPACE = "/abs/ws"


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------


class FakeTimer:
    """Timer fired manually by tests."""

    def __init__(self) -> None:
        self._callback: Callable[[], None] | None = None
        self.interval_ms: int | None = None
        self.starts = 0

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self.interval_ms = interval_ms
        self._callback = callback
        self.starts += 1

    def stop(self) -> None:
        self._callback = None

    @property
    def is_active(self) -> bool:
        return self._callback is not None

    def fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self) -> FakeTimer:
        timer = FakeTimer()
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.is_active]


# ---------------------------------------------------------------------------
# Host collaborators
# ---------------------------------------------------------------------------


class FakeSettings(ProjectSettings):
    def __init__(self) -> None:
        self.values: dict[str, Any] = {}

    def set_value(self, key: str, value: Any) -> None:
        self.values[key] = value

    def value(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def contains(self, key: str) -> bool:
        return key in self.values


class FakeProject(ProjectHost):
    """In-memory project host recording every call."""

    def __init__(self) -> None:
        self.opened = False
        self.current_url = ""
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failing: set[str] = set()
        self._settings = FakeSettings()

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.failing:
            raise RuntimeError(f"{name} failed")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def is_open(self) -> bool:
        return self.opened

    def close(self) -> None:
        self._record("close")
        self.opened = False
        self.current_url = ""
        self._settings = FakeSettings()

    def create(self, mesh_url: str, template: str = "", normal_map_format: str = "OpenGL") -> None:
        self._record("create", mesh_url, template, normal_map_format)
        self.opened = True
        self.current_url = ""
        self._settings = FakeSettings()

    def save(self, url: str) -> None:
        self._record("save", url)
        self.current_url = url

    def open(self, url: str) -> None:
        self._record("open", url)
        self.opened = True
        self.current_url = url
        self._settings = FakeSettings()

    def url(self) -> str:
        return self.current_url

    @property
    def settings(self) -> FakeSettings:
        return self._settings


class FakeExporter(MapExporter):
    """Exports ``maps[material]`` (map name -> workspace relative path)."""

    def __init__(self, names: list[str] | None = None) -> None:
        self.texture_sets = [TextureSet(name=n) for n in (names or ["Mat_A"])]
        self.resolutions: dict[str, Resolution] = {}
        self.maps: dict[str, dict[str, str]] = {}
        self.exports: list[dict[str, Any]] = []
        self.fail = False

    def select(self, name: str) -> None:
        for ts in self.texture_sets:
            ts.selected = ts.name == name

    def document_structure(self) -> list[TextureSet]:
        return list(self.texture_sets)

    def texture_set_resolution(self, name: str) -> Resolution:
        return self.resolutions.get(name, Resolution(width=1024, height=1024))

    def export_document_maps(
        self,
        preset: str,
        export_dir: str,
        file_format: str,
        config: MapExportConfig,
        materials: list[str],
    ) -> dict[str, dict[str, str]]:
        self.exports.append({
            "preset": preset,
            "export_dir": export_dir,
            "file_format": file_format,
            "config": config,
            "materials": list(materials),
        })
        if self.fail:
            raise RuntimeError("export failed")
        stack = {}
        for material in materials:
            for map_name, rel in self.maps.get(material, {}).items():
                stack[map_name] = f"{WORKSPACE}/{rel}"
        return {"default": stack}

    def exported_materials(self) -> list[str]:
        return [m for export in self.exports for m in export["materials"]]


class FakeShaderHost(ShaderHost):
    def __init__(self) -> None:
        self.descriptors: list[dict[str, Any]] = []
        self.fail = False

    def shader_instances_from_object(self, descriptor: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("no such shader")
        self.descriptors.append(descriptor)


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


def make_binding(
    asset_path: str = "Assets/Materials/Mat_A.mat",
    properties: dict[str, str] | None = None,
    shader: str = "pbr-metal-rough",
) -> dict[str, Any]:
    return {
        "assetPath": asset_path,
        "exportPreset": "Unity 5 (Standard Metallic)",
        "resourceShader": shader,
        "spToUnityProperties": properties if properties is not None else {"diffuse": "_MainTex"},
    }


def make_payload(
    materials: dict[str, Any] | None = None,
    url: str = "/projects/scene.spp",
    link_identifier: str = "link-1",
) -> dict[str, Any]:
    return {
        "applicationName": "UnityEditor",
        "exportPath": "tex",
        "workspacePath": WORKSPACE,
        "linkIdentifier": link_identifier,
        "materials": materials if materials is not None else {"Mat_A": make_binding()},
        "project": {
            "meshUrl": "/meshes/scene.fbx",
            "normal": "OpenGL",
            "template": "pbr-metal-rough",
            "url": url,
        },
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def project() -> FakeProject:
    return FakeProject()


@pytest.fixture
def exporter() -> FakeExporter:
    exp = FakeExporter()
    exp.maps["Mat_A"] = {"diffuse": "tex/diffuse.png"}
    return exp


@pytest.fixture
def shaders() -> FakeShaderHost:
    return FakeShaderHost()


@pytest.fixture
def channel() -> LoopbackChannel:
    return LoopbackChannel(connected=True)


@pytest.fixture
def options() -> LinkOptions:
    return LinkOptions(
        quick_interval=100,
        degraded_resolution=512,
        hq_threshold=2048,
        hq_interval=400,
        init_delay_on_project_creation=50,
    )


@pytest.fixture
def controller(
    project: FakeProject,
    exporter: FakeExporter,
    shaders: FakeShaderHost,
    channel: LoopbackChannel,
    options: LinkOptions,
    timers: FakeTimerFactory,
) -> SyncController:
    return SyncController(
        project, exporter, shaders, channel, options, timer_factory=timers,
    )
