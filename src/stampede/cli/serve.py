"""Server command."""

import typer

from stampede.cli._console import info, nl
from stampede.config import get_settings


def serve(
    host: str | None = typer.Option(None, "--host", help="Bind host"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Start the HTTP API server."""
    import uvicorn

    settings = get_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port

    nl()
    info(f"Stampede API on http://{bind_host}:{bind_port} (docs at /docs)")
    uvicorn.run(
        "stampede.main:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
    )
