"""Bulk operations over every configured application."""

from pathlib import Path

import structlog

from vhostpane.collaborators import ConfigWriter, DirtyListener, HostRegistrar, ProcessSignal
from vhostpane.config import Settings
from vhostpane.entity import VHostEntity
from vhostpane.models import LoadFailure, VHostRecord

logger = structlog.get_logger(__name__)


class EntityCollection:
    """Loads, starts and removes applications as a set.

    Owns the collaborators and hands them to every entity it creates.  The
    host list is memoised for the lifetime of the collection; call
    ``invalidate_hosts`` after adding, renaming or removing applications.
    """

    def __init__(
        self,
        settings: Settings,
        writer: ConfigWriter,
        signal: ProcessSignal,
        registrar: HostRegistrar,
        listener: DirtyListener | None = None,
    ) -> None:
        self._settings = settings
        self._writer = writer
        self._signal = signal
        self._registrar = registrar
        self._listener = listener
        self._all_hosts: list[str] | None = None
        self.load_failures: list[LoadFailure] = []

    # ------------------------------------------------------------------
    # Entity factories
    # ------------------------------------------------------------------

    def new_entity(self) -> VHostEntity:
        return VHostEntity(self._settings, self._writer, self._signal, self._listener)

    def entity_for_directory(self, path: str) -> VHostEntity:
        return VHostEntity.from_directory(path, self._settings, self._writer, self._signal, self._listener)

    def entity_for_file(self, file: str | Path) -> VHostEntity:
        return VHostEntity.from_file(file, self._settings, self._writer, self._signal, self._listener)

    def find(self, host: str) -> VHostEntity | None:
        """Return the loaded application whose vhost file belongs to ``host``."""
        file = self._settings.config_path_for(host)
        if not file.exists():
            return None
        return self.entity_for_file(file)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def load_all(self) -> list[VHostEntity]:
        """Load one entity per vhost file.

        Files that cannot be read are skipped and recorded in
        ``load_failures``; the rest still load.
        """
        entities: list[VHostEntity] = []
        self.load_failures = []
        for file in self._settings.vhost_files():
            try:
                entities.append(self.entity_for_file(file))
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("failed to load vhost file", file=str(file), error=str(exc))
                self.load_failures.append(LoadFailure(file=file, error=str(exc)))
        return entities

    def all_hosts(self) -> list[str]:
        """Return every server name and alias of every application."""
        if self._all_hosts is None:
            self._all_hosts = [host for entity in self.load_all() for host in entity.hosts()]
        return self._all_hosts

    def invalidate_hosts(self) -> None:
        self._all_hosts = None

    def all_hosts_registered(self) -> bool:
        """Return True if every configured host is known to the registrar."""
        hosts = self.all_hosts()
        if not hosts:
            return True
        registered = set(self._registrar.list_registered_hosts())
        return sorted(registered & set(hosts)) == sorted(hosts)

    def register_all_hosts(self) -> None:
        hosts = self.all_hosts()
        logger.info("registering hosts", hosts=hosts)
        self._registrar.register_hosts(hosts)

    def start_all(self, entities: list[VHostEntity]) -> None:
        """Write every entity's configuration in one batch, then apply each.

        Each entity is applied with ``persist=False`` since its file was
        already written by the batch.
        """
        records = self.serialize(entities)
        logger.info("starting applications", hosts=[r.host for r in records])
        self._writer.create(records)
        for entity, record in zip(entities, records):
            entity.mark_saved(record)
            entity.apply(persist=False)

    def remove_all(self, entities: list[VHostEntity]) -> None:
        """Delete every entity's configuration in one batch."""
        records = self.serialize(entities)
        logger.info("removing applications", hosts=[r.host for r in records])
        self._writer.remove(records)

    @staticmethod
    def serialize(entities: list[VHostEntity]) -> list[VHostRecord]:
        return [entity.to_record() for entity in entities]
