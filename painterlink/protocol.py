"""Command names, payload schemas and wire codec of the link protocol.

Every message is a single JSON object::

    {"command": "SET_MATERIAL_PARAMS", "payload": {...}}

Inbound payloads are validated on receipt; a missing or malformed field
raises :class:`ProtocolError`.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from painterlink.models import MaterialBinding, ProjectSpec


class Command(str, Enum):
    """Commands exchanged with the peer."""

    # inbound
    CREATE_PROJECT = "CREATE_PROJECT"
    OPEN_PROJECT = "OPEN_PROJECT"
    SEND_PROJECT_INFO = "SEND_PROJECT_INFO"
    # outbound
    SET_MATERIAL_PARAMS = "SET_MATERIAL_PARAMS"
    OPENED_PROJECT_INFO = "OPENED_PROJECT_INFO"


INBOUND_COMMANDS = (
    Command.CREATE_PROJECT,
    Command.OPEN_PROJECT,
    Command.SEND_PROJECT_INFO,
)


class ProtocolError(Exception):
    """Raised when a message or payload does not follow the protocol."""


class LinkPayload(BaseModel):
    """Payload of CREATE_PROJECT and OPEN_PROJECT."""

    model_config = ConfigDict(populate_by_name=True)

    application_name: str = Field(alias="applicationName")
    export_path: str = Field(alias="exportPath")
    workspace_path: str = Field(alias="workspacePath")
    link_identifier: str = Field(alias="linkIdentifier")
    materials: dict[str, MaterialBinding] = Field(default_factory=dict)
    project: ProjectSpec


class SetMaterialParams(BaseModel):
    """Payload of SET_MATERIAL_PARAMS."""

    material: str
    params: dict[str, str] = Field(default_factory=dict)


class OpenedProjectInfo(BaseModel):
    """Payload of OPENED_PROJECT_INFO."""

    model_config = ConfigDict(populate_by_name=True)

    link_identifier: str = Field(alias="linkIdentifier")
    project_url: str = Field(alias="projectUrl")


def parse_link_payload(payload: Any) -> LinkPayload:
    """Validate a CREATE_PROJECT / OPEN_PROJECT payload.

    Raises
    ------
    ProtocolError
        If the payload is not an object or misses a required field.
    """
    if isinstance(payload, LinkPayload):
        return payload
    if not isinstance(payload, dict):
        raise ProtocolError(f"Expected an object payload, got {type(payload).__name__}")
    try:
        return LinkPayload.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(f"Invalid link payload: {exc}") from exc


def dump_payload(payload: BaseModel) -> dict[str, Any]:
    """Serialize an outbound payload with its wire field names."""
    return payload.model_dump(mode="json", by_alias=True)


def encode_message(command: Command | str, payload: dict[str, Any] | None = None) -> str:
    """Frame a command and its payload as one JSON message."""
    return json.dumps({"command": command_name(command), "payload": payload or {}})


def decode_message(message: str | bytes) -> tuple[str, dict[str, Any]]:
    """Split a JSON message into ``(command name, payload)``.

    Raises
    ------
    ProtocolError
        If the message is not valid JSON or has no command name.
    """
    try:
        data = json.loads(message)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError(f"Malformed message: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("command"), str):
        raise ProtocolError("Message has no command name")

    payload = data.get("payload") or {}
    if not isinstance(payload, dict):
        raise ProtocolError(f"Payload of {data['command']} is not an object")
    return data["command"], payload


def command_name(command: Command | str) -> str:
    """Wire name of *command*."""
    return command.value if isinstance(command, Command) else command
