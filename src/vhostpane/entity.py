"""A single application's virtual host and its edit state.

State flags:
- ``is_new``: never saved; cleared for good by the first ``apply``.
- ``dirty``: has edits that have not been written out.
- ``revertable``: at least one field was set since construction or load.
- ``valid``: host and path are both non-empty.  Recomputed by every setter,
  by loading and by construction, but forced to False by ``apply`` and
  ``revert``.

The snapshot of tracked fields (``original_values``) is taken on
construction, after loading a file and after every save.  It drives revert,
change detection on reload, and removal of the old file when the host
changes.
"""

import os
from pathlib import Path

import structlog

from vhostpane.collaborators import ConfigWriter, DirtyListener, ProcessSignal
from vhostpane.config import Settings
from vhostpane.constants import DIRECTORY_FRAGMENT
from vhostpane.domain.app_type import detect_application_type
from vhostpane.domain.vhost_block import parse_block
from vhostpane.models import (
    ApplicationType,
    Environment,
    OriginalValues,
    TrackedField,
    VHostRecord,
)

logger = structlog.get_logger(__name__)

# Blank snapshot values for these fields mean "nothing to compare against".
_OPTIONAL_FIELDS = (TrackedField.ALIASES, TrackedField.USER_DEFINED_DATA)


def default_host_for(path: str, suffix: str) -> str:
    """Derive a host name from the directory name: ``/srv/My_App`` -> ``my-app.local``."""
    return f"{Path(path).name.lower().replace('_', '-')}{suffix}"


class VHostEntity:
    """One virtual host / application configuration.

    Construct with no data for a blank new entry, or use ``from_file`` and
    ``from_directory``.
    """

    def __init__(
        self,
        settings: Settings,
        writer: ConfigWriter,
        signal: ProcessSignal,
        listener: DirtyListener | None = None,
    ) -> None:
        self._settings = settings
        self._writer = writer
        self._signal = signal
        self._listener = listener

        self._host = ""
        self._aliases = ""
        self._path = ""
        self._environment: Environment | None = Environment.DEVELOPMENT
        self._custom_environment: str | None = None
        self._user_defined_data = ""
        self.vhostname = settings.default_vhostname
        self._application_type: ApplicationType | None = None

        self._new = True
        self._dirty = False
        self._valid = False
        self._revertable = False
        self._original = self._snapshot()

    @classmethod
    def from_file(
        cls,
        file: str | Path,
        settings: Settings,
        writer: ConfigWriter,
        signal: ProcessSignal,
        listener: DirtyListener | None = None,
    ) -> "VHostEntity":
        """Load an existing application from its vhost file.

        Raises OSError if the file cannot be read.
        """
        entity = cls(settings, writer, signal, listener)
        entity._new = False
        entity._load(Path(file))
        entity._valid = entity._has_required_fields()
        entity._original = entity._snapshot()
        return entity

    @classmethod
    def from_directory(
        cls,
        path: str,
        settings: Settings,
        writer: ConfigWriter,
        signal: ProcessSignal,
        listener: DirtyListener | None = None,
    ) -> "VHostEntity":
        """Start a new, unsaved entry for the application in ``path``."""
        entity = cls(settings, writer, signal, listener)
        entity._mark_dirty()
        entity._path = path
        entity._host = default_host_for(path, settings.host_suffix)
        entity._valid = entity._has_required_fields()
        entity._original = entity._snapshot()
        return entity

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str) -> None:
        self._host = value
        self._field_changed(TrackedField.HOST)

    @property
    def aliases(self) -> str:
        return self._aliases

    @aliases.setter
    def aliases(self, value: str) -> None:
        self._aliases = value
        self._field_changed(TrackedField.ALIASES)

    @property
    def path(self) -> str:
        return self._path

    @path.setter
    def path(self, value: str) -> None:
        self._path = value
        self._field_changed(TrackedField.PATH)

    @property
    def environment(self) -> Environment | None:
        return self._environment

    @environment.setter
    def environment(self, value: Environment | None) -> None:
        self._environment = value
        self._field_changed(TrackedField.ENVIRONMENT)

    @property
    def custom_environment(self) -> str | None:
        """Environment name from the vhost file that is not in ``Environment``."""
        return self._custom_environment

    @property
    def effective_environment(self) -> str | None:
        if self._environment is not None:
            return self._environment.value
        return self._custom_environment

    @property
    def user_defined_data(self) -> str:
        return self._user_defined_data

    @user_defined_data.setter
    def user_defined_data(self, value: str) -> None:
        self._user_defined_data = value
        self._field_changed(TrackedField.USER_DEFINED_DATA)

    @property
    def application_type(self) -> ApplicationType:
        if self._application_type is None:
            self._application_type = detect_application_type(self._path)
        return self._application_type

    @property
    def original_values(self) -> OriginalValues:
        return self._original

    @property
    def is_new(self) -> bool:
        return self._new

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def revertable(self) -> bool:
        return self._revertable

    @property
    def config_path(self) -> Path:
        return self._settings.config_path_for(self._host)

    def hosts(self) -> list[str]:
        """Return the server name followed by every alias."""
        return [self._host] + self._aliases.split()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def apply(self, persist: bool = True) -> bool:
        """Commit pending changes.

        Returns False without doing anything if the entity is invalid.  With
        ``persist=False`` the caller has already written the configuration
        and only the flags are reset.
        """
        if not self._valid:
            logger.warning("not applying changes to invalid application", path=self._path)
            return False

        logger.info("applying changes", path=self._path)
        if persist:
            if self._new:
                self.start()
            else:
                self.restart()
        self._new = False
        self._dirty = False
        self._valid = False
        return True

    def start(self) -> None:
        """Write the configuration of a new application."""
        logger.info("starting application", path=self._path)
        record = self.to_record()
        self._writer.create([record])
        self.mark_saved(record)

    def restart(self) -> None:
        """Rewrite the configuration if needed and restart the application.

        When the host or aliases changed, the file written under the old
        host is removed first.
        """
        logger.info("restarting application", path=self._path)
        if self._host != self._original.host or self._aliases != self._original.aliases:
            self._writer.remove([self._original_record()])
        if self._dirty:
            self.save_config()
        self._signal.restart(self._path)

    def save_config(self) -> None:
        """Write the current configuration over the existing file."""
        logger.info("saving configuration", config_path=str(self.config_path))
        record = self.to_record()
        self._writer.update([record])
        self.mark_saved(record)

    def mark_saved(self, record: VHostRecord) -> None:
        """Adopt the user data ``record`` was written with and refresh the snapshot."""
        self._user_defined_data = record.user_defined_data
        self._original = self._snapshot()

    def revert(self) -> None:
        """Restore every tracked field from the snapshot and clear all flags."""
        for field in TrackedField:
            self._restore(field, self._original.get(field))
        self._valid = False
        self._dirty = False
        self._revertable = False

    def reload(self) -> None:
        """Re-read the vhost file, marking dirty if it differs from the snapshot."""
        if self._new:
            return
        self._load(self._settings.config_path_for(self._original.host))
        if self._values_changed_after_load():
            self._mark_dirty()
        self._original = self._snapshot()
        self._valid = True

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_record(self) -> VHostRecord:
        """Build the record handed to a ConfigWriter.

        New applications get a default ``<Directory>`` stanza for their
        path.  For existing ones, the old path is replaced by the current
        one everywhere in the user-defined data.  The entity itself is left
        unchanged until the record is saved.
        """
        if self._new:
            user_defined_data = DIRECTORY_FRAGMENT.format(path=os.path.join(self._path, ""))
        else:
            user_defined_data = self._user_defined_data_for_current_path()

        return VHostRecord(
            app_type=self.application_type,
            config_path=str(self.config_path),
            host=self._host,
            aliases=self._aliases,
            path=self._path,
            environment=self.effective_environment,
            vhostname=self.vhostname,
            user_defined_data=user_defined_data,
        )

    def to_hash(self) -> dict[str, object]:
        return self.to_record().model_dump(mode="json")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _field_changed(self, field: TrackedField) -> None:
        self._revertable = True
        self._mark_dirty()

        if field is TrackedField.PATH:
            if self._path and not self._host:
                self._host = default_host_for(self._path, self._settings.host_suffix)
        elif field is TrackedField.ENVIRONMENT:
            self._custom_environment = None

        self._valid = self._has_required_fields()

    def _mark_dirty(self) -> None:
        self._dirty = True
        if self._listener is not None:
            self._listener.entity_marked_dirty(self)

    def _has_required_fields(self) -> bool:
        return bool(self._host) and bool(self._path)

    def _load(self, file: Path) -> None:
        fields = parse_block(file.read_text())
        self._host = fields.host
        self._aliases = fields.aliases
        self._path = fields.path
        self._environment = fields.environment
        self._custom_environment = fields.custom_environment
        self.vhostname = fields.vhostname
        self._user_defined_data = fields.user_defined_data

    def _snapshot(self) -> OriginalValues:
        return OriginalValues(
            host=self._host,
            aliases=self._aliases,
            path=self._path,
            environment=self._tracked_value(TrackedField.ENVIRONMENT),
            user_defined_data=self._user_defined_data,
        )

    def _tracked_value(self, field: TrackedField) -> object:
        if field is TrackedField.HOST:
            return self._host
        if field is TrackedField.ALIASES:
            return self._aliases
        if field is TrackedField.PATH:
            return self._path
        if field is TrackedField.ENVIRONMENT:
            if self._custom_environment is not None:
                return self._custom_environment
            return self._environment
        return self._user_defined_data

    def _restore(self, field: TrackedField, value: object) -> None:
        if field is TrackedField.HOST:
            self._host = str(value)
        elif field is TrackedField.ALIASES:
            self._aliases = str(value)
        elif field is TrackedField.PATH:
            self._path = str(value)
        elif field is TrackedField.ENVIRONMENT:
            if isinstance(value, Environment) or value is None:
                self._environment = value
                self._custom_environment = None
            else:
                self._environment = None
                self._custom_environment = str(value)
        else:
            self._user_defined_data = str(value)

    def _values_changed_after_load(self) -> bool:
        for field in TrackedField:
            original = self._original.get(field)
            if field in _OPTIONAL_FIELDS and not original:
                continue
            if self._tracked_value(field) != original:
                return True
        return False

    def _user_defined_data_for_current_path(self) -> str:
        old_path = self._original.path
        if old_path and old_path != self._path:
            return self._user_defined_data.replace(old_path, self._path)
        return self._user_defined_data

    def _original_record(self) -> VHostRecord:
        """Record describing the configuration as it was last saved."""
        environment = self._original.environment
        if isinstance(environment, Environment):
            environment = environment.value
        return VHostRecord(
            app_type=self.application_type,
            config_path=str(self._settings.config_path_for(self._original.host)),
            host=self._original.host,
            aliases=self._original.aliases,
            path=self._original.path,
            environment=environment,
            vhostname=self.vhostname,
            user_defined_data=self._original.user_defined_data,
        )
