"""
Remote Client: Fetch decrypted secrets from a running ``lb serve``.

The remote address is written as ``HOST:PORT``. An ``http://HOST:PORT``
URL is accepted and normalized to that form; anything else (other
schemes, paths, missing port) is rejected.

Every non-200 answer and every transport failure is a hard
:class:`RemoteError`. Nothing is retried.
"""
import asyncio
import logging
from typing import Optional
from urllib.parse import quote, urlsplit

import aiohttp
import orjson

from ..exceptions import ConfigurationError, RemoteError

logger = logging.getLogger("lockbox.remote")

DEFAULT_TIMEOUT = 10.0


def parse_remote(remote: str) -> str:
    """Normalize a remote address to canonical ``HOST:PORT``.

    Args:
        remote: ``HOST:PORT`` or ``http://HOST:PORT``.

    Returns:
        The ``HOST:PORT`` form (IPv6 hosts keep their brackets).

    Raises:
        ConfigurationError: If the address cannot be normalized.
    """
    value = remote.strip()
    if not value:
        raise ConfigurationError("remote address is empty")
    if "://" in value:
        parts = urlsplit(value)
        if parts.scheme != "http":
            raise ConfigurationError(
                f"unsupported remote scheme {parts.scheme!r}: "
                "the server only speaks plain http"
            )
        if parts.path not in ("", "/") or parts.query or parts.fragment:
            raise ConfigurationError(
                f"remote address must not contain a path: {remote!r}"
            )
        value = parts.netloc
    else:
        parts = urlsplit(f"http://{value}")
        if parts.path or parts.query or parts.fragment:
            raise ConfigurationError(
                f"remote address must be HOST:PORT, got {remote!r}"
            )
    try:
        port = parts.port
    except ValueError as err:
        raise ConfigurationError(f"invalid remote port in {remote!r}") from err
    if port is None or not parts.hostname:
        raise ConfigurationError(
            f"remote address must be HOST:PORT, got {remote!r}"
        )
    return value


class RemoteClient:
    """Client for the read-only remote protocol.

    Args:
        remote: ``HOST:PORT`` or ``http://HOST:PORT``.
        timeout: Total seconds allowed for each request.
    """

    def __init__(self, remote: str, timeout: float = DEFAULT_TIMEOUT):
        self.address = parse_remote(remote)
        self.base_url = f"http://{self.address}"
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=self._timeout)

    async def _fetch(
        self,
        path: str,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> str:
        if session is None:
            async with self._session() as own:
                return await self._fetch(path, own)
        url = f"{self.base_url}{path}"
        try:
            async with session.get(url) as resp:
                body = await resp.text()
                if resp.status != 200:
                    raise RemoteError(
                        f"remote server returned status {resp.status}: {body}",
                        status=resp.status,
                        body=body,
                    )
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise RemoteError(
                f"failed to fetch {path} from remote {self.address}: {err}"
            ) from err
        except UnicodeDecodeError as err:
            raise RemoteError(
                f"remote {self.address} sent a non-text body for {path}: {err}"
            ) from err

    # ------------------------------------------------------------------
    # Protocol operations
    # ------------------------------------------------------------------

    async def health(self) -> bool:
        body = await self._fetch("/health")
        return orjson.loads(body).get("status") == "ok"

    async def list_keys(self, session: Optional[aiohttp.ClientSession] = None) -> list[str]:
        body = await self._fetch("/secrets", session)
        try:
            keys = orjson.loads(body)
        except orjson.JSONDecodeError as err:
            raise RemoteError(f"failed to decode remote response: {err}") from err
        if not isinstance(keys, list):
            raise RemoteError("failed to decode remote response: expected a list")
        return keys

    async def get_secret(self, key: str, session: Optional[aiohttp.ClientSession] = None) -> str:
        return await self._fetch(f"/secrets/{quote(key, safe='')}", session)

    async def export_env(self) -> str:
        """Fetch the formatted ``export`` lines in one round trip."""
        return await self._fetch("/env")

    async def fetch_secrets(self) -> dict[str, str]:
        """Fetch the key list, then every value, into a mapping."""
        async with self._session() as session:
            keys = await self.list_keys(session)
            secrets = {}
            for key in keys:
                secrets[key] = await self.get_secret(key, session)
        logger.debug("Fetched %d secret(s) from %s", len(secrets), self.address)
        return secrets


def fetch_remote_secrets(remote: str, timeout: float = DEFAULT_TIMEOUT) -> dict[str, str]:
    """Blocking wrapper around :meth:`RemoteClient.fetch_secrets`."""
    client = RemoteClient(remote, timeout)
    return asyncio.run(client.fetch_secrets())


def fetch_remote_env(remote: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Blocking wrapper around :meth:`RemoteClient.export_env`."""
    client = RemoteClient(remote, timeout)
    return asyncio.run(client.export_env())
