#!/usr/bin/env python3

import argparse
import logging

import uvicorn

from envmanager.core.config import settings

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="github-env-manager",
        description="Manage GitHub Actions variables and secrets across repositories and environments.",
    )
    parser.add_argument("-H", "--host", default=settings.HOST, help="Host to bind the server to")
    parser.add_argument("-p", "--port", type=int, default=settings.PORT, help="Port to run the server on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args(argv)

    if not args.host.strip():
        parser.error("invalid host configuration")
    if args.port <= 0 or args.port > 65535:
        parser.error("invalid port number")
    return args


def main(argv=None):
    args = parse_args(argv)
    configure_logging()
    logger.info("Starting %s on http://%s:%d", settings.PROJECT_NAME, args.host, args.port)
    uvicorn.run(
        "envmanager.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
