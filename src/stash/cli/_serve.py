"""``stash serve`` — run the service under uvicorn.

Builds the config from ``STASH_*`` environment variables, applies CLI
overrides, configures logging, and hands the app to the ASGI server.
"""

import argparse
import logging
import sys

from stash.config import AppConfig
from stash.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    """Install a root handler for stash's loggers."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def serve(args: argparse.Namespace) -> None:
    """Start the stash service and block until it exits."""
    from stash.service import create_app

    try:
        config = AppConfig.from_env(
            host=args.host,
            port=args.port,
            admin_token=args.admin_token,
            request_timeout=args.timeout,
            log_level=args.log_level,
        )
        app = create_app(config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging("debug" if config.debug else config.log_level)
    run_server(app, config)


def run_server(app: object, config: AppConfig) -> None:
    """Run *app* with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level,
        log_config=None,
        lifespan="on",
    )
