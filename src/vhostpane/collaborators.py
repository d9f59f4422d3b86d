"""Collaborator protocols and in-memory implementations.

Entities never touch the vhost directory, the running applications or the
system host database themselves; they hand serialised records and paths to
the collaborators defined here.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from vhostpane.models import VHostRecord

if TYPE_CHECKING:
    from vhostpane.entity import VHostEntity


class ConfigWriter(Protocol):
    """Protocol that all vhost file backends must satisfy.

    Each call receives a batch of records and either persists all of them or
    raises.  Callers do not retry.
    """

    def create(self, records: list[VHostRecord]) -> None:
        """Write vhost files for applications that have never been saved."""
        ...

    def update(self, records: list[VHostRecord]) -> None:
        """Rewrite vhost files for existing applications."""
        ...

    def remove(self, records: list[VHostRecord]) -> None:
        """Delete the vhost files identified by each record's config_path."""
        ...


class ProcessSignal(Protocol):
    """Tells a running application to reload its configuration."""

    def restart(self, path: str) -> None: ...


class HostRegistrar(Protocol):
    """Access to the host names the operating system resolves locally."""

    def list_registered_hosts(self) -> list[str]: ...

    def register_hosts(self, hosts: list[str]) -> None: ...


class DirtyListener(Protocol):
    """Observer notified whenever an entity is marked dirty."""

    def entity_marked_dirty(self, entity: "VHostEntity") -> None: ...


class MemoryConfigWriter:
    """In-memory writer that records every batch it receives."""

    def __init__(self) -> None:
        self.created: list[list[VHostRecord]] = []
        self.updated: list[list[VHostRecord]] = []
        self.removed: list[list[VHostRecord]] = []
        self._files: dict[str, VHostRecord] = {}

    def create(self, records: list[VHostRecord]) -> None:
        self.created.append(list(records))
        self._store(records)

    def update(self, records: list[VHostRecord]) -> None:
        self.updated.append(list(records))
        self._store(records)

    def remove(self, records: list[VHostRecord]) -> None:
        self.removed.append(list(records))
        for record in records:
            self._files.pop(record.config_path, None)

    def get(self, config_path: str | Path) -> VHostRecord | None:
        """Return the record last written to ``config_path``, or None."""
        return self._files.get(str(config_path))

    def _store(self, records: list[VHostRecord]) -> None:
        for record in records:
            self._files[record.config_path] = record


class MemoryProcessSignal:
    """Records restart requests instead of touching the application."""

    def __init__(self) -> None:
        self.restarted: list[str] = []

    def restart(self, path: str) -> None:
        self.restarted.append(path)


class MemoryHostRegistrar:
    """Host registry held in a list."""

    def __init__(self, hosts: list[str] | None = None) -> None:
        self._hosts: list[str] = list(hosts or [])

    def list_registered_hosts(self) -> list[str]:
        return list(self._hosts)

    def register_hosts(self, hosts: list[str]) -> None:
        """Add hosts, skipping ones already present."""
        for host in hosts:
            if host not in self._hosts:
                self._hosts.append(host)
