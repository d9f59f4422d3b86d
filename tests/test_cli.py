"""Tests for the vhostpane command line."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vhostpane.tools.cli.main import app

runner = CliRunner()

BLOCK = """\
<VirtualHost *:80>
  ServerName blog.local
  ServerAlias www.blog.local
  DocumentRoot "{path}"
  RailsEnv staging
</VirtualHost>
"""


@pytest.fixture
def apps_dir(tmp_path: Path, monkeypatch) -> Path:
    """Point the CLI at a settings file that writes vhost files directly."""
    apps_dir = tmp_path / "vhosts"
    apps_dir.mkdir()
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"apps_dir": str(apps_dir), "writer": "file"}))
    monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)
    return apps_dir


@pytest.fixture
def blog(tmp_path: Path, apps_dir: Path) -> Path:
    app_path = tmp_path / "blog"
    app_path.mkdir()
    (apps_dir / "blog.local.vhost.conf").write_text(BLOCK.format(path=app_path))
    return app_path


class TestList:
    def test_lists_configured_applications(self, blog):
        """
        Given one configured application
        When `vhostpane list` runs
        Then its host, path, environment and type are printed
        """
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert f"blog.local\t{blog}\tstaging\track" in result.output


class TestHosts:
    def test_prints_names_and_aliases(self, blog):
        """
        Given an application with one alias
        When `vhostpane hosts` runs
        Then both names are printed
        """
        result = runner.invoke(app, ["hosts"])
        assert result.exit_code == 0
        assert result.output.split() == ["blog.local", "www.blog.local"]


class TestShow:
    def test_prints_block(self, blog):
        """
        Given a configured application
        When `vhostpane show blog.local` runs
        Then its vhost block is printed
        """
        result = runner.invoke(app, ["show", "blog.local"])
        assert result.exit_code == 0
        assert result.output.startswith("<VirtualHost *:80>\n  ServerName blog.local\n")

    def test_unknown_host_fails(self, apps_dir):
        """
        Given no application for ghost.local
        When `vhostpane show ghost.local` runs
        Then it exits 1
        """
        result = runner.invoke(app, ["show", "ghost.local"])
        assert result.exit_code == 1


class TestAdd:
    def test_writes_new_vhost_file(self, tmp_path: Path, apps_dir: Path):
        """
        Given an application directory named My_Shop
        When `vhostpane add` runs with --production
        Then my-shop.local.vhost.conf is written in production
        """
        shop = tmp_path / "My_Shop"
        shop.mkdir()

        result = runner.invoke(app, ["add", str(shop), "--production"])

        assert result.exit_code == 0
        written = (apps_dir / "my-shop.local.vhost.conf").read_text()
        assert "ServerName my-shop.local" in written
        assert "RackEnv production" in written

    def test_custom_host(self, tmp_path: Path, apps_dir: Path):
        """
        Given an application directory
        When `vhostpane add` runs with --host
        Then the file is named after that host
        """
        shop = tmp_path / "shop"
        shop.mkdir()

        result = runner.invoke(app, ["add", str(shop), "--host", "store.test"])

        assert result.exit_code == 0
        assert (apps_dir / "store.test.vhost.conf").exists()


class TestRestart:
    def test_touches_restart_file(self, blog):
        """
        Given a configured application
        When `vhostpane restart blog.local` runs
        Then tmp/restart.txt is created in the application
        """
        result = runner.invoke(app, ["restart", "blog.local"])
        assert result.exit_code == 0
        assert (blog / "tmp" / "restart.txt").exists()


class TestRemove:
    def test_deletes_vhost_file(self, blog, apps_dir: Path):
        """
        Given a configured application
        When `vhostpane remove blog.local` runs
        Then its vhost file is gone
        """
        result = runner.invoke(app, ["remove", "blog.local"])
        assert result.exit_code == 0
        assert not (apps_dir / "blog.local.vhost.conf").exists()


class TestSettingsErrors:
    def test_malformed_settings_exit_1(self, tmp_path: Path, monkeypatch):
        """
        Given a settings file with invalid JSON
        When any command runs
        Then it exits 1 and reports the problem
        """
        cfg_path = tmp_path / "config.json"
        cfg_path.write_text("{oops")
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)

        result = runner.invoke(app, ["hosts"])

        assert result.exit_code == 1
        assert "Error loading settings" in result.output


class TestDryRun:
    def test_add_prints_block_without_writing(self, tmp_path: Path, apps_dir: Path):
        """
        Given an application directory
        When `vhostpane --dry-run add` runs
        Then the block is printed and no vhost file is written
        """
        shop = tmp_path / "shop"
        shop.mkdir()

        result = runner.invoke(app, ["--dry-run", "add", str(shop)])

        assert result.exit_code == 0
        assert "ServerName shop.local" in result.output
        assert "[dry run] Started shop.local" in result.output
        assert list(apps_dir.iterdir()) == []

    def test_remove_keeps_file(self, blog, apps_dir: Path):
        """
        Given a configured application
        When `vhostpane --dry-run remove blog.local` runs
        Then its vhost file is still there
        """
        result = runner.invoke(app, ["--dry-run", "remove", "blog.local"])
        assert result.exit_code == 0
        assert "[dry run] Removed blog.local" in result.output
        assert (apps_dir / "blog.local.vhost.conf").exists()

    def test_restart_does_not_touch_application(self, blog):
        """
        Given a configured application
        When `vhostpane --dry-run restart blog.local` runs
        Then no tmp/restart.txt is created
        """
        result = runner.invoke(app, ["--dry-run", "restart", "blog.local"])
        assert result.exit_code == 0
        assert not (blog / "tmp").exists()
