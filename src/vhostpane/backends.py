"""Concrete collaborators backed by the filesystem and helper scripts.

Implements the ``ConfigWriter``, ``ProcessSignal`` and ``HostRegistrar``
protocols from ``vhostpane.collaborators``.
"""

from pathlib import Path

import structlog

from vhostpane.collaborators import (
    ConfigWriter,
    HostRegistrar,
    MemoryConfigWriter,
    MemoryHostRegistrar,
    MemoryProcessSignal,
    ProcessSignal,
)
from vhostpane.config import Settings
from vhostpane.constants import RESTART_DIR, RESTART_FILE
from vhostpane.domain.vhost_block import serialize_block
from vhostpane.helpers.client import HelperClient
from vhostpane.models import VHostRecord

logger = structlog.get_logger(__name__)


class HelperConfigWriter:
    """ConfigWriter that delegates to the privileged installer helpers.

    The helpers do not distinguish between new and existing files, so
    ``create`` and ``update`` both run the installer.
    """

    def __init__(self, client: HelperClient) -> None:
        self._client = client

    def create(self, records: list[VHostRecord]) -> None:
        self._client.install_config(records)

    def update(self, records: list[VHostRecord]) -> None:
        self._client.install_config(records)

    def remove(self, records: list[VHostRecord]) -> None:
        self._client.uninstall_config(records)


class FileConfigWriter:
    """ConfigWriter that writes vhost files directly.

    Useful when the vhost directory is writable by the current user, e.g. a
    user-level Apache or a test tree.
    """

    def create(self, records: list[VHostRecord]) -> None:
        for record in records:
            self._write(record)

    def update(self, records: list[VHostRecord]) -> None:
        for record in records:
            self._write(record)

    def remove(self, records: list[VHostRecord]) -> None:
        """Delete each record's file. Missing files are ignored."""
        for record in records:
            Path(record.config_path).unlink(missing_ok=True)
            logger.info("removed vhost file", config_path=record.config_path)

    def _write(self, record: VHostRecord) -> None:
        target = Path(record.config_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(serialize_block(record.to_fields(), record.app_type))
        logger.info("wrote vhost file", config_path=record.config_path)


class RestartFileSignal:
    """ProcessSignal that touches ``tmp/restart.txt`` in the application.

    Passenger restarts an application on its next request when that file's
    mtime changes.
    """

    def restart(self, path: str) -> None:
        tmp_dir = Path(path) / RESTART_DIR
        tmp_dir.mkdir(exist_ok=True)
        (tmp_dir / RESTART_FILE).touch()


class DsclHostRegistrar:
    """HostRegistrar backed by Directory Services and the hosts helper."""

    def __init__(self, client: HelperClient) -> None:
        self._client = client

    def list_registered_hosts(self) -> list[str]:
        return self._client.list_hosts()

    def register_hosts(self, hosts: list[str]) -> None:
        self._client.install_hosts(hosts)


def build_backends(
    settings: Settings, dry_run: bool = False
) -> tuple[ConfigWriter, ProcessSignal, HostRegistrar]:
    """Return the writer, signal and registrar selected by ``settings``.

    With ``dry_run`` nothing outside the process is touched: batches and
    restarts are only recorded in memory and no host counts as registered.
    """
    if dry_run:
        return MemoryConfigWriter(), MemoryProcessSignal(), MemoryHostRegistrar()
    client = HelperClient(settings)
    writer: ConfigWriter
    if settings.writer == "file":
        writer = FileConfigWriter()
    else:
        writer = HelperConfigWriter(client)
    return writer, RestartFileSignal(), DsclHostRegistrar(client)
