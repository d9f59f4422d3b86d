"""Application-wide constants."""

from pathlib import Path

APP_NAME = "vhostpane"

DEFAULT_APPS_DIR = Path("/private/etc/apache2/passenger_pane_vhosts")
DEFAULT_EXTENSION = "vhost.conf"
DEFAULT_VHOSTNAME = "*:80"
DEFAULT_HOST_SUFFIX = ".local"

# Privileged helpers shipped alongside the pane.
HELPERS_DIR = Path("/Library/PreferencePanes/Passenger.prefPane/Contents/Resources")
DEFAULT_HELPER_INTERPRETER = "/usr/bin/ruby"
DEFAULT_CONFIG_INSTALLER = HELPERS_DIR / "config_installer.rb"
DEFAULT_CONFIG_UNINSTALLER = HELPERS_DIR / "config_uninstaller.rb"
DEFAULT_HOSTS_INSTALLER = HELPERS_DIR / "hosts_installer.rb"
DEFAULT_HOSTS_LIST_COMMAND: list[str] = ["/usr/bin/dscl", "localhost", "-list", "/Local/Default/Hosts"]

# Entry point inspected to tell Rails applications from plain Rack ones.
RAILS_ENVIRONMENT_FILE = Path("config") / "environment.rb"

RESTART_DIR = "tmp"
RESTART_FILE = "restart.txt"

DIRECTORY_FRAGMENT = """\
  <Directory "{path}">
    Order allow,deny
    Allow from all
  </Directory>"""
