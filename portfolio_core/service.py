"""
Portfolio Core - service entrypoint

Commands:
    serve   Run the FastAPI service under uvicorn
    repair  Run the relation repair job once and exit

Usage:
    portfolio-core serve [--host HOST] [--port PORT] [--backend NAME]
    portfolio-core repair [--backend NAME]
"""

import argparse
import asyncio
import json
import os
import sys


def start_service(host: str, port: int) -> None:
    """Start the uvicorn server."""
    import uvicorn

    print(f"[Portfolio] Starting service on {host}:{port}")
    print(f"[Portfolio] Backend: {os.environ.get('BACKEND', 'postgres')}")

    uvicorn.run(
        "portfolio_core.api:app",
        host=host,
        port=port,
        log_level="info",
        access_log=True,
    )


async def run_repair() -> list[dict]:
    """Open the configured store, repair every relation, close the store."""
    from .db.config import get_settings
    from .db.repositories.factory import create_store
    from .jobs import run_relation_repair

    store = create_store(get_settings())
    await store.init()
    try:
        async with store.unit_of_work() as uow:
            stats = await run_relation_repair(uow)
    finally:
        await store.close()
    return [s.to_dict() for s in stats]


def main() -> int:
    parser = argparse.ArgumentParser(description="Portfolio Core service")
    parser.add_argument(
        "--backend",
        choices=["postgres", "surrealdb", "memory"],
        default=None,
        help="Storage backend (default: BACKEND env or postgres)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP service")
    serve.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )

    sub.add_parser("repair", help="Heal drifted back-references and exit")

    args = parser.parse_args()

    if args.backend:
        os.environ["BACKEND"] = args.backend

    try:
        if args.command == "serve":
            start_service(args.host, args.port)
        else:
            stats = asyncio.run(run_repair())
            print(json.dumps(stats, indent=2))
        return 0
    except KeyboardInterrupt:
        print("\n[Portfolio] Stopped by user")
        return 0
    except Exception as e:
        print(f"[ERROR] {args.command} failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
