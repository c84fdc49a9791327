"""
Run a child command with secrets in its environment.

The child inherits stdin, stdout and stderr unchanged, and the parent
waits for it with no timeout.
"""
import os
import logging
import subprocess
from collections.abc import Mapping, Sequence
from typing import Optional

from .exceptions import SubprocessError

logger = logging.getLogger("lockbox.cli")


def build_environment(
    secrets: Mapping[str, str],
    base: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Overlay ``secrets`` on ``base`` (the current environment by default).

    Secret names win over colliding variables.
    """
    env = dict(os.environ if base is None else base)
    env.update(secrets)
    return env


def run_command(command: Sequence[str], secrets: Mapping[str, str]) -> int:
    """Spawn ``command`` with ``secrets`` exported and wait for it.

    Args:
        command: Program and arguments.
        secrets: Variables to add to the child environment.

    Returns:
        The child's exit code; ``128 + N`` if it was killed by signal N.

    Raises:
        SubprocessError: If no command was given or it could not start.
    """
    if not command:
        raise SubprocessError("no command provided")
    argv = list(command)
    env = build_environment(secrets)
    logger.debug("Running %s with %d secret(s)", argv[0], len(secrets))
    try:
        proc = subprocess.run(argv, env=env, check=False)
    except OSError as err:
        raise SubprocessError(
            f"failed to execute command: {err}", command=argv
        ) from err
    if proc.returncode < 0:
        return 128 - proc.returncode
    return proc.returncode


__all__ = ["build_environment", "run_command"]
