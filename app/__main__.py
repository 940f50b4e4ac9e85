"""Command-line entry point: ``python -m app`` or ``pingz``.

Configure logging, load the YAML config, and serve the exporter with
uvicorn. Config problems terminate the process with exit code 1; failing to
bind the metrics port makes uvicorn exit non-zero; ``--help`` exits 0.
"""

import argparse
import sys
from typing import Optional, Sequence

import uvicorn

from app.config import Settings, get_settings
from app.main import create_app
from app.pingz.core.loader import ConfigError, load_config
from app.pingz.core.logging_config import configure_logging, get_logger
from app.pingz.core.state import HealthState


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pingz",
        description="Poll HTTP endpoints and export their status as Prometheus metrics.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=settings.CONFIG_PATH,
        help="Path to config.yaml file (default: %(default)s)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the exporter until the process is stopped.

    Returns:
        int: Process exit code for startup failures; serving normally only
            returns after uvicorn shuts down.
    """
    settings = get_settings()
    args = build_parser(settings).parse_args(argv)

    configure_logging(settings)
    logger = get_logger("pingz")
    logger.info("Starting pingz...", env=settings.ENVIRONMENT)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.critical("Failed to read config file", path=args.config, error=str(e))
        return 1

    logger.info(
        "Read config",
        path=args.config,
        port=config.port,
        frequency=config.frequency,
        hosts=[host.name for host in config.hosts],
    )

    state = HealthState()
    app = create_app(config.to_poll_config(), state=state, settings=settings)

    logger.info("Listening", host=settings.METRICS_HOST, port=config.port)
    uvicorn.run(app, host=settings.METRICS_HOST, port=config.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
