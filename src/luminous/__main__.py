"""
Luminous CLI

  python -m luminous serve --port 8080

Persistence is configured from the environment (LUMINOUS_KV__URL / LUMINOUS_KV__TOKEN,
or UPSTASH_REDIS_REST_URL / UPSTASH_REDIS_REST_TOKEN). Without credentials the
server still starts: state stays in memory and the dedup loop skips its passes.
"""

from __future__ import annotations

import argparse
import sys

from luminous.server.server import add_serve_arguments, serve


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]

    parser = argparse.ArgumentParser(prog="luminous")
    sub = parser.add_subparsers(dest="cmd", required=True)

    serve_parser = sub.add_parser("serve", help="Run the persistence sidecar (blocking).")
    add_serve_arguments(serve_parser)

    args = parser.parse_args(argv)

    if args.cmd == "serve":
        serve(args)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
