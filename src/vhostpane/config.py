"""Settings file loading, validation, and persistence.

Schema on disk (~/.config/vhostpane/config.json):

    {
        "apps_dir": "/private/etc/apache2/passenger_pane_vhosts",
        "extension": "vhost.conf",
        "writer": "helper"
    }

Every key is optional; missing keys take the defaults below.  Keys prefixed
with "_" are reserved (e.g. "_comment") and are stripped on load.
"""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from vhostpane.constants import (
    DEFAULT_APPS_DIR,
    DEFAULT_CONFIG_INSTALLER,
    DEFAULT_CONFIG_UNINSTALLER,
    DEFAULT_EXTENSION,
    DEFAULT_HELPER_INTERPRETER,
    DEFAULT_HOST_SUFFIX,
    DEFAULT_HOSTS_INSTALLER,
    DEFAULT_HOSTS_LIST_COMMAND,
    DEFAULT_VHOSTNAME,
)

CONFIG_PATH = Path("~/.config/vhostpane/config.json").expanduser()

_README_PATH = Path("~/.config/vhostpane/README.md").expanduser()

_README_CONTENT = """\
# vhostpane configuration

Edit `config.json` in this directory to change where vhost files live and
how they are written.

## Keys

| key                  | default                                         |
|----------------------|-------------------------------------------------|
| `apps_dir`           | `/private/etc/apache2/passenger_pane_vhosts`    |
| `extension`          | `vhost.conf`                                    |
| `default_vhostname`  | `*:80`                                          |
| `host_suffix`        | `.local`                                        |
| `writer`             | `helper` (privileged helpers) or `file`         |
| `helper_interpreter` | `/usr/bin/ruby`                                 |
| `config_installer`   | path to `config_installer.rb`                   |
| `config_uninstaller` | path to `config_uninstaller.rb`                 |
| `hosts_installer`    | path to `hosts_installer.rb`                    |
| `hosts_list_command` | `["/usr/bin/dscl", "localhost", "-list", ...]`  |

Keys prefixed with `_` (e.g. `_comment`) are ignored by vhostpane.
"""


class Settings(BaseModel):
    """Where vhost files live and which helpers write them."""

    apps_dir: Path = DEFAULT_APPS_DIR
    extension: str = DEFAULT_EXTENSION
    default_vhostname: str = DEFAULT_VHOSTNAME
    host_suffix: str = DEFAULT_HOST_SUFFIX
    writer: Literal["helper", "file"] = "helper"
    helper_interpreter: str = DEFAULT_HELPER_INTERPRETER
    config_installer: Path = DEFAULT_CONFIG_INSTALLER
    config_uninstaller: Path = DEFAULT_CONFIG_UNINSTALLER
    hosts_installer: Path = DEFAULT_HOSTS_INSTALLER
    hosts_list_command: list[str] = Field(default_factory=lambda: list(DEFAULT_HOSTS_LIST_COMMAND))

    def config_path_for(self, host: str) -> Path:
        """Return the vhost file that backs ``host``."""
        return self.apps_dir / f"{host}.{self.extension}"

    def vhost_files(self) -> list[Path]:
        """Return every existing vhost file, sorted by name."""
        if not self.apps_dir.is_dir():
            return []
        return sorted(self.apps_dir.glob(f"*.{self.extension}"))


class SettingsError(Exception):
    """Raised when config.json exists but cannot be parsed or validated."""


def load_settings() -> Settings:
    """Load and validate the settings file.

    Creates the config directory, an empty config.json, and a README on first
    run, returning default settings.  Raises SettingsError if the file exists
    but is malformed.
    """
    if not CONFIG_PATH.exists():
        _bootstrap()
        return Settings()

    try:
        raw: object = json.loads(CONFIG_PATH.read_text() or "{}")
    except json.JSONDecodeError as exc:
        raise SettingsError(f"config.json is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise SettingsError("config.json must be a JSON object at the top level")

    # Strip reserved/comment keys.
    values = {k: v for k, v in raw.items() if not k.startswith("_")}

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist settings to disk, creating directories as needed."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(json.dumps(settings.model_dump(mode="json"), indent=2))


def _bootstrap() -> None:
    """Create the config directory, an empty config.json, and a README."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text("{}\n")
    if not _README_PATH.exists():
        _README_PATH.write_text(_README_CONTENT)
