"""
Worker process entry point.

Loads settings, prepares the database, starts the worker runtime and
runs until SIGINT/SIGTERM. The signal handlers are bound to the runtime
instance created here.

Dependencies: python-dotenv, car_repair.workers.pipeline
System role: Long-lived worker process

Usage:
    car-repair-worker
    python -m car_repair.workers
"""

import asyncio
import logging
import signal

from dotenv import load_dotenv

from car_repair.boundary.db.connection import create_session_factory, get_async_engine
from car_repair.boundary.db.create_tables import initialize_database
from car_repair.configs import get_settings
from car_repair.core.worker.worker_runtime import WorkerRuntime
from car_repair.observability.logger import configure_logging
from car_repair.workers.pipeline import build_pipeline

logger = logging.getLogger(__name__)


def install_signal_handlers(loop: asyncio.AbstractEventLoop, runtime: WorkerRuntime) -> list[signal.Signals]:
    """
    Route SIGINT and SIGTERM to `runtime.request_stop`.

    Platforms without loop signal support (Windows) fall back to the
    default KeyboardInterrupt behaviour.

    Returns:
        list of signals that were installed
    """
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _on_signal, runtime, sig)
        except (NotImplementedError, RuntimeError):
            continue
        installed.append(sig)
    return installed


def _on_signal(runtime: WorkerRuntime, sig: signal.Signals) -> None:
    logger.info(f"{__name__}:_on_signal - Received {sig.name}, stopping worker")
    runtime.request_stop()


async def run_worker() -> None:
    """Run the worker until a stop signal arrives."""
    settings = get_settings()
    engine = get_async_engine(settings.database)
    try:
        await initialize_database(engine)
        pipeline = build_pipeline(settings, create_session_factory(engine))

        loop = asyncio.get_running_loop()
        installed = install_signal_handlers(loop, pipeline.runtime)

        await pipeline.runtime.start()
        try:
            await pipeline.runtime.wait_stopped()
        finally:
            await pipeline.runtime.stop()
            for sig in installed:
                loop.remove_signal_handler(sig)
    finally:
        await engine.dispose()


def main() -> None:
    """Console script entry point."""
    load_dotenv()
    configure_logging(get_settings().log_level)
    try:
        asyncio.run(run_worker())
    except KeyboardInterrupt:
        logger.info(f"{__name__}:main - Interrupted")
