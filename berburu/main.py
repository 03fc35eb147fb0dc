"""Application entry point.

Main module that builds the dependency container and runs the aiohttp web
server exposing the listing analysis API. Configures logging from LOG_LEVEL.
"""

import logging

from aiohttp import web

from .api.handlers import create_app
from .config import config
from .core.container import Container
from .scrapers import scraper_registry

# Logging
logging.basicConfig(
    format="%(asctime)s - %(levelname)s - %(message)s",
    level=getattr(logging, config.server.log_level.upper(), logging.INFO),
)
logger = logging.getLogger(__name__)


def build_app(container: Container | None = None) -> web.Application:
    """Create the web application from the dependency container.

    Args:
        container: Container to resolve services from, a new one by default.

    Returns:
        Configured aiohttp application.
    """
    container = container or Container()
    return create_app(container.analysis_orchestrator())


def main() -> None:
    """Main application entry point.

    Starts the HTTP server on the configured host and port. Resources owned by
    the orchestrator (HTTP session, Redis, pending archival tasks) are opened
    on startup and released on shutdown.
    """
    app = build_app()
    logger.info(f"Starting server on {config.server.host}:{config.server.port}")
    logger.info(f"Supported marketplaces: {', '.join(scraper_registry.get_all_platforms())}")
    logger.info(
        f"Headless fallback {'enabled' if config.scraping.enable_headless_browser else 'disabled'}, "
        f"classifier {'configured' if config.classifier.url else 'not configured'}"
    )
    web.run_app(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
