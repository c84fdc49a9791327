"""
Shell export formatting.

Turns a secret into one line that a POSIX shell can ``eval``::

    export KEY="value with \\"quotes\\" and \\$dollars"

Inside double quotes a POSIX shell only treats backslash, double quote,
dollar sign and backtick specially, so prefixing exactly those with one
backslash makes the shell reproduce the original text.

Key names are not quoted, so they must be valid shell variable names
(letters, digits and underscores, not starting with a digit). Any other
name is refused with :class:`InvalidValue`; ``lb run`` still passes such
secrets to the child environment.

Known limitation: the format is line-oriented, so a value containing a
raw newline is emitted as-is and spans several lines.
"""
import re
from collections.abc import Mapping

from .exceptions import InvalidValue

_SHELL_SPECIAL = frozenset('\\"$`')
_SHELL_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def escape_value(value: str) -> str:
    """Escape ``value`` for use inside a double-quoted shell string.

    Single left-to-right pass, so an inserted backslash is never escaped
    again.
    """
    return "".join("\\" + ch if ch in _SHELL_SPECIAL else ch for ch in value)


def format_export_line(key: str, value: str) -> str:
    """Return ``export KEY="<escaped value>"`` terminated by a newline.

    Raises:
        InvalidValue: If ``key`` is not a shell variable name.
    """
    if _SHELL_NAME.fullmatch(key) is None:
        raise InvalidValue(f"'{key}' is not a valid shell variable name")
    return f'export {key}="{escape_value(value)}"\n'


def format_env(secrets: Mapping[str, str]) -> str:
    """Format a whole mapping, one line per key in ascending order."""
    return "".join(
        format_export_line(key, secrets[key]) for key in sorted(secrets)
    )
