import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

from httpstime import schemas, setup_logging
from httpstime.core import settings
from httpstime.core.errors import ConfigurationError, HttpsTimeError
from httpstime.core.estimator import format_sample

log = logging.getLogger(__name__)

app = typer.Typer()


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Address to listen on.")] = settings.server.host,
    port: Annotated[int, typer.Option(help="TCP port to listen on.")] = settings.server.port,
    uds: Annotated[str | None, typer.Option(help="Listen on a unix socket instead.")] = settings.server.uds,
    tls_cert: Annotated[Path | None, typer.Option(help="PEM certificate chain.")] = settings.server.tls_cert,
    tls_key: Annotated[Path | None, typer.Option(help="PEM private key.")] = settings.server.tls_key,
    sessions: Annotated[bool, typer.Option(help="Serve persistent sessions.")] = settings.server.sessions,
    debug: Annotated[bool, typer.Option(help="Log debug messages.")] = settings.debug,
):
    """Serve the time on /.well-known/time."""
    from httpstime.server import TimeServer

    setup_logging(debug, settings.log_dir)
    config = settings.server.model_copy(
        update={
            "host": host,
            "port": port,
            "uds": uds,
            "tls_cert": tls_cert,
            "tls_key": tls_key,
            "sessions": sessions,
        }
    )

    try:
        server = TimeServer(config)
        asyncio.run(server.serve())
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e
    except KeyboardInterrupt:
        print("\nProgram interrupted by user. Exiting.")


@app.command()
def query(
    target: Annotated[str, typer.Argument(help="Time server, e.g. localhost:8123 or https://example.com")],
    session: Annotated[bool, typer.Option("--session", help="Use a persistent session instead of HTTP.")] = False,
    cert_hash: Annotated[
        str | None, typer.Option(help="Base64 SHA-256 fingerprint of the server certificate (sessions only).")
    ] = None,
    count: Annotated[int, typer.Option(min=1, help="Samples to take within one session.")] = 1,
    timeout: Annotated[float, typer.Option(help="Seconds to wait for the server.")] = settings.client.timeout,
    debug: Annotated[bool, typer.Option(help="Log debug messages.")] = settings.debug,
):
    """Measure the offset between the local clock and a time server."""
    from httpstime.utils.general import normalize_target, parse_fingerprint

    setup_logging(debug, settings.log_dir)
    url = normalize_target(target, session=session)

    try:
        if cert_hash is not None:
            parse_fingerprint(cert_hash)
            if not session:
                log.warning("--cert-hash only applies to sessions, ignoring it")

        if count > 1 and not session:
            log.warning("--count only applies to sessions, taking a single sample")

        samples = asyncio.run(_query(url, session, cert_hash, count, timeout))
    except HttpsTimeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo("\n\n".join(format_sample(url, sample) for sample in samples))


async def _query(
    url: str,
    session: bool,
    cert_hash: str | None,
    count: int,
    timeout: float,
) -> list[schemas.SyncSample]:
    from httpstime.client import SessionClient, measure_http

    if not session:
        return [await measure_http(url, timeout=timeout)]

    async with SessionClient(url, cert_hash=cert_hash, timeout=timeout) as client:
        return [await client.measure() for _ in range(count)]


if __name__ == "__main__":
    app()
