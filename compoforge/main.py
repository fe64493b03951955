"""Compoforge API server entry point.

Run:
    compoforge --port 8080

Environment variables (prefix COMPOFORGE_):
    COMPOFORGE_PORT, COMPOFORGE_HOST, COMPOFORGE_GEMINI_API_KEY
"""

import argparse
import logging

from compoforge.config import settings


def main():
    """Run the API server."""
    import uvicorn

    from compoforge.api import create_app

    parser = argparse.ArgumentParser(description="Compoforge layered image compositor")
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help=f"HTTP port (default: {settings.PORT}, env: COMPOFORGE_PORT)"
    )
    parser.add_argument(
        "--host", "-H",
        default=None,
        help=f"Host to bind to (default: {settings.HOST}, env: COMPOFORGE_HOST)"
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # CLI args > env vars > defaults (via settings)
    port = args.port or settings.PORT
    host = args.host or settings.HOST

    logging.getLogger(__name__).info(f"Starting HTTP server on {host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level=args.log_level)


if __name__ == "__main__":
    main()
