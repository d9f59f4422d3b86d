"""Pure functions for reading and writing ``<VirtualHost>`` blocks.

A vhost file holds exactly one block.  A handful of directives are
recognised and lifted into structured fields; everything else inside the
block (``<Directory>`` stanzas, rewrite rules, comments) is kept as an
opaque residual and spliced back in unchanged on write.

There is no grammar here: each directive is found with its own pattern and
removed from the text, so extractions are independent of one another and of
the order the directives appear in.
"""

import re

from vhostpane.constants import DEFAULT_VHOSTNAME
from vhostpane.models import ApplicationType, VHostFields, split_environment

_SERVER_NAME = re.compile(r"\n\s*ServerName\s+(.+)")
_SERVER_ALIAS = re.compile(r"\n\s*ServerAlias\s+(.+)")
_DOCUMENT_ROOT = re.compile(r'\n\s*DocumentRoot\s+"(.+)"')
_ENVIRONMENT = re.compile(r"\n\s*(Rails|Rack)Env\s+(\w+)")
_OPENING = re.compile(r"<VirtualHost\s(.+?)>")
_CLOSING = re.compile(r"\s*</VirtualHost>\n*")
_LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\n)+")


def _extract(pattern: re.Pattern[str], text: str) -> tuple[re.Match[str] | None, str]:
    """Return the last match of ``pattern`` and ``text`` with every match removed."""
    matches = list(pattern.finditer(text))
    return (matches[-1] if matches else None), pattern.sub("", text)


def parse_block(raw: str) -> VHostFields:
    """Parse the contents of a vhost file into structured fields.

    Missing directives fall back to defaults rather than raising:
    - no ``ServerName`` / ``DocumentRoot`` gives an empty host / path,
    - no ``ServerAlias`` gives empty aliases,
    - no ``RailsEnv`` / ``RackEnv`` leaves both environment fields unset,
    - no bind spec on the opening marker gives ``*:80``.

    When a directive appears more than once the last one wins; every
    occurrence is removed from the residual.

    An environment of ``development`` or ``production`` maps onto the
    ``Environment`` enum; any other name is kept as ``custom_environment``.
    """
    text = raw.strip()

    server_name, text = _extract(_SERVER_NAME, text)
    server_alias, text = _extract(_SERVER_ALIAS, text)
    document_root, text = _extract(_DOCUMENT_ROOT, text)
    env, text = _extract(_ENVIRONMENT, text)
    opening, text = _extract(_OPENING, text)
    _, text = _extract(_CLOSING, text)

    environment, custom_environment = split_environment(env.group(2) if env else None)

    return VHostFields(
        vhostname=opening.group(1) if opening else DEFAULT_VHOSTNAME,
        host=server_name.group(1).strip() if server_name else "",
        aliases=server_alias.group(1).strip() if server_alias else "",
        path=document_root.group(1) if document_root else "",
        environment=environment,
        custom_environment=custom_environment,
        user_defined_data=_LEADING_BLANK_LINES.sub("", text),
    )


def serialize_block(fields: VHostFields, app_type: ApplicationType = ApplicationType.RAILS) -> str:
    """Render fields back into a ``<VirtualHost>`` block.

    Directives whose value is empty are left out, which keeps
    ``parse_block(serialize_block(fields)) == fields`` for anything
    ``parse_block`` produced.  The environment directive is ``RailsEnv`` for
    Rails applications and ``RackEnv`` otherwise.
    """
    lines = [f"<VirtualHost {fields.vhostname}>"]
    if fields.host:
        lines.append(f"  ServerName {fields.host}")
    if fields.aliases:
        lines.append(f"  ServerAlias {fields.aliases}")
    if fields.path:
        lines.append(f'  DocumentRoot "{fields.path}"')

    environment = fields.effective_environment
    if environment:
        directive = "RailsEnv" if app_type is ApplicationType.RAILS else "RackEnv"
        lines.append(f"  {directive} {environment}")

    if fields.user_defined_data:
        lines.append(fields.user_defined_data)
    lines.append("</VirtualHost>")
    return "\n".join(lines) + "\n"
