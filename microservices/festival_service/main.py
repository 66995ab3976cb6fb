"""
Festival Service Worker

Runs the campaign lifecycle scheduler: an activation sweep at startup,
then the hourly sweep and the daily rolling-campaign reset until
interrupted.

    python -m microservices.festival_service.main
"""

import asyncio
import signal

from core.logger import setup_service_logger

from .factory import close_factory, get_factory

SERVICE_NAME = "festival_service"
logger = setup_service_logger(SERVICE_NAME)


async def run() -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    try:
        factory = await get_factory()
        logger.info(f"Storage backend: {factory.config.storage_backend} ({factory.config.data_dir})")

        # Catch up on anything that became active while the worker was down
        await factory.service.run_activation_sweep()

        factory.scheduler.start()
        logger.info("✅ Festival service worker started")
        await stop.wait()

    except Exception as e:
        logger.error(f"Failed to run festival service: {e}")
        raise
    finally:
        await close_factory()
        logger.info("✅ Festival service worker stopped")


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
