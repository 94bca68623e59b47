import argparse
import asyncio
import logging
import sys

from fsgate.config import TRANSPORTS, ServerConfig
from fsgate.server.access import ContainmentMode
from fsgate.server.session import ServerSession
from fsgate.transport.http.server import HttpServerTransport
from fsgate.transport.server import ServerTransport
from fsgate.transport.stdio.server import StdioServerTransport

logger = logging.getLogger("fsgate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fsgate",
        description="File system RPC service confined to workspace roots.",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Serve the FileSystem service.")
    serve.add_argument("--transport", choices=TRANSPORTS)
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--secret", help="Secret required to set workspace roots.")
    serve.add_argument(
        "--unrestricted",
        action="store_true",
        default=None,
        help="Disable all workspace-root and secret checks.",
    )
    serve.add_argument(
        "--containment",
        choices=[mode.value for mode in ContainmentMode],
        help="Root containment test (default: segments).",
    )
    serve.add_argument("--log-level")
    return parser


def load_config(args: argparse.Namespace) -> ServerConfig:
    """Environment config with command-line flags layered on top."""
    config = ServerConfig.from_env()
    if args.secret:
        config.secret = args.secret
        config.secret_generated = False
    if args.unrestricted is not None:
        config.unrestricted = args.unrestricted
    if args.containment:
        config.containment = ContainmentMode(args.containment)
    if args.transport:
        config.transport = args.transport
    if args.host:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.log_level:
        config.log_level = args.log_level.upper()
    return config


def configure_logging(level: str) -> None:
    # stdout carries protocol messages for the stdio transport
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_transport(config: ServerConfig) -> ServerTransport:
    if config.transport == "http":
        return HttpServerTransport(host=config.host, port=config.port)
    return StdioServerTransport()


async def serve(config: ServerConfig) -> None:
    transport = create_transport(config)
    session = ServerSession(transport, config)
    await session.start()
    try:
        if isinstance(transport, HttpServerTransport):
            await transport.serve(log_level=config.log_level)
        else:
            await session.wait_closed()
    finally:
        await session.stop()


def _serve(args: argparse.Namespace) -> int:
    config = load_config(args)
    configure_logging(config.log_level)
    if config.secret_generated:
        logger.warning("Generated workspace secret: %s", config.secret)

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "serve":
        return _serve(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
