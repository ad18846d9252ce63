"""Command-line entry point that serves the login application."""

from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from govbr_oidc.config import load_config
from govbr_oidc.models.errors import ConfigurationError
from govbr_oidc.web.app import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    load_dotenv()

    try:
        config = load_config()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Cannot start: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")


if __name__ == "__main__":
    main()
