"""
Remote Server: Read-only HTTP access to an opened vault.

Endpoints (GET only):
    /health          → {"status": "ok"}
    /secrets         → JSON array of secret names, ascending
    /secrets/{key}   → decrypted value as text/plain
    /env             → ``export KEY="value"`` lines, ascending

Security Note:
    Values leave this process decrypted and in clear text. There is no
    authentication and no TLS, so the server binds to loopback only.
    Never log values, only key names and status codes.

Vault calls hit SQLite and decrypt, so handlers run them in a worker
thread and the event loop keeps serving other requests.
"""
import asyncio
import logging
from dataclasses import dataclass

import orjson
from aiohttp import web

from ..exceptions import ConfigurationError, LockboxError, NotFound
from ..vault.config import is_loopback
from ..vault.secret_vault import SecretVault

logger = logging.getLogger("lockbox.remote")


@dataclass(frozen=True)
class ServerContext:
    """State shared by every request handler: the opened vault.

    The vault is created once before the server starts and only read
    afterwards.
    """

    vault: SecretVault


CONTEXT_KEY = web.AppKey("lockbox_context", ServerContext)


def _dumps(obj) -> str:
    return orjson.dumps(obj).decode("utf-8")


def _context(request: web.Request) -> ServerContext:
    return request.app[CONTEXT_KEY]


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

@web.middleware
async def error_middleware(request: web.Request, handler):
    """Convert Lockbox failures into HTTP statuses with a short body."""
    try:
        return await handler(request)
    except NotFound as err:
        logger.info("404 %s: key=%s", request.path, err.key)
        return web.Response(status=404, text=f"Error: {err}")
    except LockboxError as err:
        logger.error("500 %s: %s", request.path, err)
        return web.Response(status=500, text=f"Error: {err}")


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"}, dumps=_dumps)


async def list_keys(request: web.Request) -> web.Response:
    keys = await asyncio.to_thread(_context(request).vault.keys)
    return web.json_response(keys, dumps=_dumps)


async def get_one(request: web.Request) -> web.Response:
    key = request.match_info.get("key", "")
    if not key:
        return web.Response(status=400, text="Error: no key specified")
    value = await asyncio.to_thread(_context(request).vault.get, key)
    return web.Response(text=value, content_type="text/plain")


def _export_body(vault: SecretVault) -> str:
    return "".join(vault.export_lines())


async def export_all(request: web.Request) -> web.Response:
    # built in full first so a failure is a 500, not a truncated 200
    body = await asyncio.to_thread(_export_body, _context(request).vault)
    return web.Response(text=body, content_type="text/plain")


def build_app(context: ServerContext) -> web.Application:
    """Create the aiohttp application serving ``context``."""
    app = web.Application(middlewares=[error_middleware])
    app[CONTEXT_KEY] = context
    app.router.add_get("/health", health)
    app.router.add_get("/secrets", list_keys)
    app.router.add_get("/secrets/", get_one)
    app.router.add_get("/secrets/{key:.+}", get_one)
    app.router.add_get("/env", export_all)
    return app


def serve(context: ServerContext, host: str = "127.0.0.1", port: int = 8100) -> None:
    """Run the server until interrupted.

    Raises:
        ConfigurationError: If ``host`` is not a loopback address.
    """
    if not is_loopback(host):
        raise ConfigurationError(
            f"refusing to bind to non-loopback address {host!r}"
        )
    app = build_app(context)
    logger.info("Serving %s on %s:%d", context.vault.store.path, host, port)
    web.run_app(app, host=host, port=port, print=None, access_log=logger)
