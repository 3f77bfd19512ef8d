"""Tempo Wellness Advisor entry point — ``python -m tempo.core.server.main``.

Serves the wellness analysis tools, the focus area registry and the daily
prompts over Streamable HTTP. The server holds per-user wellness data and
has no auth layer, so it only binds to loopback unless explicitly overridden.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from tempo.core.config.settings import get_settings
from tempo.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Configure logging from settings, check the bind address and serve the wellness tools."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.tempo_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger = logging.getLogger(__name__)
    if not settings.tempo_allow_insecure_bind and not _is_loopback_host(settings.tempo_host):
        raise RuntimeError(
            "Refusing to bind Tempo server to a non-loopback host without an auth layer. "
            "Set TEMPO_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting Tempo Wellness Advisor on %s:%d",
        settings.tempo_host,
        settings.tempo_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.tempo_host,
        port=settings.tempo_port,
    )


if __name__ == "__main__":
    run()
