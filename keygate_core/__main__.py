"""Command line entry point: ``keygate`` / ``python -m keygate_core``."""

import argparse
import os

import structlog
import uvicorn

from .config import Settings
from .logging_config import setup_logging

logger = structlog.get_logger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keygate", description="API key gateway")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument("--config", default=settings.config_file, help="Access configuration JSON file")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    return parser


def main(argv=None) -> None:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)

    # The app factory reads settings from the environment in each worker
    os.environ["KEYGATE_CONFIG_FILE"] = args.config
    os.environ["KEYGATE_LOG_LEVEL"] = args.log_level

    setup_logging(settings.service_name, level=args.log_level, json_output=settings.json_logs)
    logger.info("starting", host=args.host, port=args.port, config=args.config)

    uvicorn.run(
        "keygate_core.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
