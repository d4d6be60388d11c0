"""Application entry point."""

import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from betterbets.api.server import run_server
from betterbets.config import get_config


def main() -> None:
    """Main entry point: load config → configure logging → serve until SIGTERM/SIGINT."""
    try:
        config = get_config()
    except ValidationError as e:
        logging.basicConfig(level=logging.ERROR)
        logging.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)
    logger.info(f"Configuration loaded: env={config.env}")

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    shutdown_event = asyncio.Event()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        loop.run_until_complete(run_server(config, shutdown_event=shutdown_event))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        sys.exit(1)
    finally:
        loop.close()
        logger.info("Application shutdown complete")


if __name__ == "__main__":
    main()
