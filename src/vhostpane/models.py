"""Domain models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class Environment(Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ApplicationType(Enum):
    RAILS = "rails"
    RACK = "rack"


def split_environment(value: str | None) -> tuple[Environment | None, str | None]:
    """Map an environment name to ``(enum, None)`` if known, else ``(None, value)``."""
    if value in {e.value for e in Environment}:
        return Environment(value), None
    return None, value


class TrackedField(Enum):
    """Fields captured in an entity's snapshot and restored on revert."""

    HOST = "host"
    ALIASES = "aliases"
    PATH = "path"
    ENVIRONMENT = "environment"
    USER_DEFINED_DATA = "user_defined_data"


@dataclass
class VHostFields:
    """Structured content of one ``<VirtualHost>`` block.

    At most one of ``environment`` and ``custom_environment`` is set.
    ``user_defined_data`` holds every line of the block that is not one of
    the recognised directives, verbatim.
    """

    vhostname: str
    host: str = ""
    aliases: str = ""
    path: str = ""
    environment: Environment | None = None
    custom_environment: str | None = None
    user_defined_data: str = ""

    @property
    def effective_environment(self) -> str | None:
        """Return the environment name as written in the block."""
        if self.environment is not None:
            return self.environment.value
        return self.custom_environment


@dataclass(frozen=True)
class OriginalValues:
    """Snapshot of the tracked fields at the last load or save.

    ``environment`` is the custom environment string when one was set,
    otherwise the enum member (or None).
    """

    host: str
    aliases: str
    path: str
    environment: Environment | str | None
    user_defined_data: str

    def get(self, field: TrackedField) -> object:
        if field is TrackedField.HOST:
            return self.host
        if field is TrackedField.ALIASES:
            return self.aliases
        if field is TrackedField.PATH:
            return self.path
        if field is TrackedField.ENVIRONMENT:
            return self.environment
        return self.user_defined_data


class VHostRecord(BaseModel):
    """Serialised form of an entity handed to a ConfigWriter."""

    app_type: ApplicationType
    config_path: str
    host: str
    aliases: str
    path: str
    environment: str | None
    vhostname: str
    user_defined_data: str

    def to_fields(self) -> VHostFields:
        """Convert back into block fields for ``serialize_block``."""
        environment, custom_environment = split_environment(self.environment)
        return VHostFields(
            vhostname=self.vhostname,
            host=self.host,
            aliases=self.aliases,
            path=self.path,
            environment=environment,
            custom_environment=custom_environment,
            user_defined_data=self.user_defined_data,
        )


@dataclass
class LoadFailure:
    """A vhost file that could not be read during a bulk load."""

    file: Path
    error: str
