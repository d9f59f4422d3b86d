"""Thin wrapper around the privileged helper scripts.

Writing into the Apache configuration directory and the host database needs
elevated rights, so the actual file and host changes are done by small helper
scripts.  Batches of vhost records are passed to them as a single YAML
document argument.

Raises ``HelperError`` on any non-zero exit code.
"""

import subprocess
from pathlib import Path

import yaml

from vhostpane.config import Settings
from vhostpane.models import VHostRecord


class HelperError(Exception):
    """Raised when a helper command returns a non-zero exit code."""


def dump_records(records: list[VHostRecord]) -> str:
    """Serialise a batch of records into the YAML document helpers expect."""
    return yaml.safe_dump([record.model_dump(mode="json") for record in records], sort_keys=False)


class HelperClient:
    """Shells out to the configured helpers.

    Args:
        settings: Supplies the interpreter, helper script paths and the
            command that lists registered hosts.
    """

    def __init__(self, settings: Settings) -> None:
        self._interpreter = settings.helper_interpreter
        self._config_installer = settings.config_installer
        self._config_uninstaller = settings.config_uninstaller
        self._hosts_installer = settings.hosts_installer
        self._hosts_list_command = list(settings.hosts_list_command)

    def install_config(self, records: list[VHostRecord]) -> None:
        """Create or overwrite the vhost files for ``records``."""
        self._run_script(self._config_installer, [dump_records(records)])

    def uninstall_config(self, records: list[VHostRecord]) -> None:
        """Delete the vhost files for ``records``."""
        self._run_script(self._config_uninstaller, [dump_records(records)])

    def install_hosts(self, hosts: list[str]) -> None:
        """Register every host name with the local resolver."""
        self._run_script(self._hosts_installer, hosts)

    def list_hosts(self) -> list[str]:
        """Return the host names currently registered, one per output line."""
        output = self._run(self._hosts_list_command)
        return [line.strip() for line in output.splitlines() if line.strip()]

    def _run_script(self, script: Path, args: list[str]) -> str:
        return self._run([self._interpreter, str(script), *args])

    def _run(self, cmd: list[str]) -> str:
        """Run a command, returning stdout. Raises HelperError on failure."""
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise HelperError(
                f"Command failed (exit {result.returncode}):\n"
                f"  {' '.join(cmd)}\n"
                f"  stderr: {result.stderr.strip()}"
            )
        return result.stdout
