# luminous/server/server.py
from __future__ import annotations

import argparse
from collections.abc import Sequence

import uvicorn

from luminous.config.loader import load_settings
from luminous.server.app_factory import create_app


def build_arg_parser(prog: str = "luminous-server") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Run the Luminous persistence sidecar (state sync + memory library).",
    )
    add_serve_arguments(parser)
    return parser


def add_serve_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host interface to bind (default: 0.0.0.0).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port to bind (default: 8080).",
    )
    parser.add_argument(
        "--log-level",
        dest="app_log_level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Application log level (default: info).",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for rotating log files (default: console only).",
    )
    parser.add_argument(
        "--uvicorn-log-level",
        dest="uvicorn_log_level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
        help="Uvicorn log level (default: info).",
    )


def serve(args: argparse.Namespace) -> None:
    # 1) Load settings
    cfg = load_settings()

    # 2) Build the FastAPI app
    app = create_app(cfg=cfg, log_level=args.app_log_level, log_dir=args.log_dir)

    # 3) Run uvicorn in this process; blocks until the server is stopped.
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=args.uvicorn_log_level,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """
    Entry point for running the sidecar as a long-lived server.

    Example:
        luminous-server --host 0.0.0.0 --port 8080
    """
    parser = build_arg_parser()
    serve(parser.parse_args(argv))


if __name__ == "__main__":
    main()
