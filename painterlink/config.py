"""Global configuration: constants and link options."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Project setting holding the link identifier bound to the open project
LINK_IDENTIFIER_KEY = "painterlink/linkIdentifier"

# File format of every exported map
EXPORT_FORMAT = "png"

# Prefix of environment variables overriding options
ENV_PREFIX = "PAINTERLINK_"

# Option name -> environment variable suffix
_ENV_KEYS: dict[str, str] = {
    "linkQuickInterval": "LINK_QUICK_INTERVAL",
    "linkDegradedResolution": "LINK_DEGRADED_RESOLUTION",
    "linkHQTreshold": "LINK_HQ_TRESHOLD",
    "linkHQInterval": "LINK_HQ_INTERVAL",
    "initDelayOnProjectCreation": "INIT_DELAY_ON_PROJECT_CREATION",
    "autoLink": "AUTO_LINK",
    "logLevel": "LOG_LEVEL",
}


class LinkOptions(BaseModel):
    """Externally settable link options.

    Fields are populated either by attribute name or by the option name
    used in settings files (``linkQuickInterval``, ``linkHQTreshold``...).
    All durations are in milliseconds, all resolutions in pixels.
    """

    model_config = ConfigDict(populate_by_name=True)

    quick_interval: int = Field(1000, alias="linkQuickInterval", gt=0)
    """Delay between the engine going idle and the quick export."""

    degraded_resolution: int = Field(1024, alias="linkDegradedResolution", gt=0)
    """Width of the maps sent during the quick phase."""

    hq_threshold: int = Field(2048, alias="linkHQTreshold", gt=0)
    """Side length above which the quick phase is degraded."""

    hq_interval: int = Field(4000, alias="linkHQInterval", gt=0)
    """Delay between the quick phase and the full resolution re-send."""

    init_delay_on_project_creation: int = Field(
        5000, alias="initDelayOnProjectCreation", gt=0,
    )
    """Fallback delay before synchronizing a freshly created project."""

    auto_link: bool = Field(True, alias="autoLink")
    log_level: str = Field("INFO", alias="logLevel")

    def to_settings(self) -> dict[str, Any]:
        """Dump options keyed by their option names."""
        return self.model_dump(mode="json", by_alias=True)


def load_options(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> LinkOptions:
    """Load merged options: defaults -> settings file -> env vars -> overrides.

    Parameters
    ----------
    path:
        Optional JSON settings file keyed by option name.
    overrides:
        Explicit values applied last.

    Returns
    -------
    LinkOptions
        The validated options.
    """
    values: dict[str, Any] = {}

    if path is not None:
        settings_path = Path(path)
        if settings_path.is_file():
            try:
                data = json.loads(settings_path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                logger.warning("Could not read settings file %s", settings_path)
            else:
                if isinstance(data, dict):
                    values.update({k: v for k, v in data.items() if k in _ENV_KEYS})
                else:
                    logger.warning("Could not read settings file %s", settings_path)

    for option, suffix in _ENV_KEYS.items():
        env_val = os.environ.get(ENV_PREFIX + suffix)
        if env_val is not None:
            values[option] = env_val

    if overrides:
        aliases = {
            name: field.alias for name, field in LinkOptions.model_fields.items()
        }
        for key, value in overrides.items():
            values[aliases.get(key, key)] = value

    return LinkOptions.model_validate(values)


def save_options(options: LinkOptions, path: str | Path) -> Path:
    """Write options to a JSON settings file and return its path."""
    settings_path = Path(path)
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings_path.write_text(
        json.dumps(options.to_settings(), indent=2), encoding="utf-8",
    )
    return settings_path
