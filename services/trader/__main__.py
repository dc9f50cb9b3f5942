"""Entry point: python -m services.trader"""

import asyncio
import logging
import os
import signal
import sys

from services.trader.config import ConfigError, load_config
from services.trader.storage import StorageError
from services.trader.trader import TraderAgent


async def main() -> int:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    log = logging.getLogger(__name__)

    try:
        config = load_config()
    except ConfigError as e:
        if e.missing:
            log.error("Missing mandatory config fields: %s", ", ".join(e.missing))
        log.error("%s", e)
        return 1

    try:
        trader = TraderAgent(config, os.environ.get("NATS_URL", "nats://localhost:4222"))
    except StorageError as e:
        log.error("Cannot initialise state files: %s", e)
        return 1

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("Shutdown signal received")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    await trader.start()
    log.info("Trader is running. Press Ctrl+C to stop.")

    await stop_event.wait()
    await trader.stop()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
