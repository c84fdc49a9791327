"""Remote: Read-only HTTP protocol for decrypted secrets.

The server is unauthenticated and unencrypted in transit. It binds to
loopback only; tunnel it (e.g. ``ssh -L``) to reach it from elsewhere.
"""

from .server import ServerContext, build_app, serve
from .client import RemoteClient, parse_remote, fetch_remote_secrets, fetch_remote_env

__all__ = [
    "ServerContext",
    "build_app",
    "serve",
    "RemoteClient",
    "parse_remote",
    "fetch_remote_secrets",
    "fetch_remote_env",
]
