"""Server entry point: resolve configuration, build the app, run uvicorn."""

from __future__ import annotations

import argparse
from pathlib import Path

import uvicorn
from loguru import logger

from core.settings import Settings
from services.api.main import create_app


def parse_listen(value: str, default_host: str = "0.0.0.0") -> tuple[str, int]:
    """Split ``host:port`` (or ``:port``) into its parts."""
    host, sep, port = value.rpartition(":")
    if not sep:
        host, port = "", value
    try:
        port_number = int(port)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid listen address: {value!r}") from exc
    if not 0 < port_number < 65536:
        raise argparse.ArgumentTypeError(f"invalid port in listen address: {value!r}")
    return host.strip("[]") or default_host, port_number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simple Object Storage server")
    parser.add_argument("--config", type=Path, help="YAML configuration file (default: $SOS_CONFIG or config/default.yaml)")
    parser.add_argument("--data", type=Path, help="Filesystem root for buckets (overrides storage.root)")
    parser.add_argument("--listen", help="Address to bind the HTTP server, e.g. :8080 or 127.0.0.1:9000")
    parser.add_argument("--log-level", help="Log level (overrides logging.level)")
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.load(args.config)
    if args.data is not None:
        settings = settings.model_copy(
            update={"storage": settings.storage.model_copy(update={"root": args.data})}
        )
    if args.listen:
        host, port = parse_listen(args.listen, settings.server.host)
        settings = settings.model_copy(
            update={"server": settings.server.model_copy(update={"host": host, "port": port})}
        )
    if args.log_level:
        settings = settings.model_copy(
            update={"logging": settings.logging.model_copy(update={"level": args.log_level.upper()})}
        )
    return settings


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)
    app = create_app(settings)
    logger.info(
        "SOS server listening on {host}:{port}, data in {root!r}",
        host=settings.server.host,
        port=settings.server.port,
        root=str(settings.storage.root),
    )
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        access_log=False,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
