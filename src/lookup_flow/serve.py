#!/usr/bin/env python3
"""
lookup-flow HTTP Service

Starts the FastAPI server for the enrichment API.

Usage:
    lookup-flow-server                          # Host/port from config (default 127.0.0.1:9848)
    lookup-flow-server --port 8080              # Custom port
    lookup-flow-server --config ./config.yaml   # Custom config file
    LOOKUP_FLOW_PIPELINE=people.yaml lookup-flow-server
"""

import argparse
import os
import sys
from pathlib import Path

import uvicorn

from .config import ENV_CONFIG, load_config
from .core import ConfigurationError


def main():
    parser = argparse.ArgumentParser(
        description="lookup-flow HTTP Service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: server.host from config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: server.port from config)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Config file (env: {ENV_CONFIG})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )

    args = parser.parse_args()

    # The app factory reads the config path from the environment
    if args.config:
        os.environ[ENV_CONFIG] = str(args.config.resolve())

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    host = args.host or config["server"]["host"]
    port = args.port or config["server"]["port"]

    print(f"Starting lookup-flow on http://{host}:{port}")
    print(f"API docs: http://{host}:{port}/docs")
    print(f"Pipeline: {config['pipeline'] or '(none)'}")
    print()

    uvicorn.run(
        "lookup_flow.server.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
