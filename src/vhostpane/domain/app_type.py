"""Classify an application directory as Rails or plain Rack."""

import re
from pathlib import Path

from vhostpane.constants import RAILS_ENVIRONMENT_FILE
from vhostpane.models import ApplicationType

# Rails 2.x boots through Rails::Initializer.run, Rails 3+ through
# <AppName>::Application.initialize!.
RAILS_APP_PATTERN = re.compile(r"::Initializer\.run|Application\.initialize!")


def detect_application_type(path: str | Path) -> ApplicationType:
    """Return RAILS if ``config/environment.rb`` under ``path`` boots Rails.

    A blank path, a missing file or one that cannot be read all count as
    RACK.
    """
    if not str(path):
        return ApplicationType.RACK
    env_file = Path(path) / RAILS_ENVIRONMENT_FILE
    try:
        contents = env_file.read_text()
    except (OSError, UnicodeDecodeError):
        return ApplicationType.RACK
    if RAILS_APP_PATTERN.search(contents):
        return ApplicationType.RAILS
    return ApplicationType.RACK
