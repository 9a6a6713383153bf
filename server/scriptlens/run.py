import argparse
import json
import logging
import os

import uvicorn

from scriptlens import config
from scriptlens.services.worker import ScriptWorker


def _require_file(path: str) -> str:
    target_path = os.path.abspath(path)
    if not os.path.isfile(target_path):
        raise SystemExit(f"File does not exist: {target_path}")
    return target_path


def _serve(args: argparse.Namespace) -> None:
    url = f"http://{args.host}:{args.port}"
    print(f"🚀 Starting server at {url}")
    print("   Press Ctrl+C to stop.")

    uvicorn.run(
        "scriptlens.main:app",
        host=args.host,
        port=args.port,
        reload=False,
        log_level=args.log_level.lower(),
    )


def _outline(args: argparse.Namespace) -> None:
    target_path = _require_file(args.path)
    tokens = ScriptWorker().build_outline(target_path)
    payload = [token.model_dump(mode="json", by_alias=True) for token in tokens]
    print(json.dumps(payload, indent=2))


def _refs(args: argparse.Namespace) -> None:
    target_path = _require_file(args.path)
    references = ScriptWorker().extract_references(target_path, args.roots)
    payload = {root: sorted(members) for root, members in references.items()}
    print(json.dumps(payload, indent=2))


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the CLI.

    - `serve` starts the FastAPI server.
    - `outline` / `refs` analyse a single file and print JSON.
    """
    parser = argparse.ArgumentParser(
        prog="scriptlens",
        description="Outline and member-reference analysis for TypeScript/JavaScript scripts.",
    )
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging verbosity (default: {config.LOG_LEVEL}).",
    )
    # Bare `scriptlens` behaves like `scriptlens serve`.
    parser.set_defaults(handler=_serve, host=config.DEFAULT_HOST, port=config.DEFAULT_PORT)
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API (default).")
    serve_parser.add_argument(
        "--host",
        default=config.DEFAULT_HOST,
        help=f"Host interface to bind the server to (default: {config.DEFAULT_HOST}).",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=config.DEFAULT_PORT,
        help=f"Port to run the server on (default: {config.DEFAULT_PORT}).",
    )
    serve_parser.set_defaults(handler=_serve)

    outline_parser = subparsers.add_parser("outline", help="Print the outline of a script.")
    outline_parser.add_argument("path", help="Script to analyse.")
    outline_parser.set_defaults(handler=_outline)

    refs_parser = subparsers.add_parser("refs", help="Print members accessed off root objects.")
    refs_parser.add_argument("path", help="Script to analyse.")
    refs_parser.add_argument(
        "--root",
        dest="roots",
        action="append",
        required=True,
        help="Root object name; repeat for several (e.g. --root Things --root Users).",
    )
    refs_parser.set_defaults(handler=_refs)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    args.handler(args)


if __name__ == "__main__":
    main()
