"""
Employee gateway entrypoint.
Serves the resilient employee API in front of the upstream directory service.
"""

import uvicorn
from loguru import logger

from gateway.api import create_app
from gateway.logger import setup_logging
from gateway.settings import global_settings


def main() -> None:
    """Main function."""
    setup_logging(global_settings.log_level)
    logger.info(
        f"Starting employee gateway on {global_settings.host}:{global_settings.port}..."
    )

    try:
        uvicorn.run(
            create_app(settings=global_settings),
            host=global_settings.host,
            port=global_settings.port,
            log_level=global_settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    finally:
        logger.info("Employee gateway stopped")


if __name__ == "__main__":
    main()
