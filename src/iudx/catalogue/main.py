from __future__ import annotations

import ssl
from typing import Optional

import typer
import uvicorn

from .app import create_app
from .config import get_settings

cli = typer.Typer(help="Catalogue Service entrypoint")


@cli.command()
def serve(
    host: str = "0.0.0.0",
    port: int = 8443,
    ssl_keyfile: Optional[str] = None,
    ssl_certfile: Optional[str] = None,
    ssl_ca_certs: Optional[str] = None,
) -> None:
    """Start the Catalogue Service using uvicorn.

    TLS termination normally happens in front of the service, which forwards the
    verified client subject in the configured certificate headers. Those headers
    are honoured only from the addresses in ``CATALOGUE_TRUSTED_PROXIES``, so the
    socket peer is kept as the client address rather than X-Forwarded-For. With
    ``--ssl-ca-certs`` every direct client must present a certificate.
    """

    settings = get_settings()
    app = create_app(settings)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        lifespan="on",
        ssl_keyfile=ssl_keyfile,
        ssl_certfile=ssl_certfile,
        ssl_ca_certs=ssl_ca_certs,
        ssl_cert_reqs=ssl.CERT_REQUIRED if ssl_ca_certs else ssl.CERT_NONE,
        proxy_headers=False,
    )


if __name__ == "__main__":
    cli()
