#!/usr/bin/env python3
"""Main entry point for the QuizHub API server."""

import logging
import sys

import uvicorn

from quizhub.api import create_app
from quizhub.config import load_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    logger.info("Starting QuizHub API server...")

    # Load configuration
    try:
        config = load_config()
    except FileNotFoundError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(config.logging.level.upper())

    app = create_app(config)
    logger.info(
        f"Serving on {config.server.host}:{config.server.port} "
        f"({config.server.environment})"
    )
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
