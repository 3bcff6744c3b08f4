import logging
import signal
import sys
import threading
from dataclasses import asdict
from typing import Optional

from app_config import AppConfigurationError, load_app_config, resolve_config_path
from app_config_schema import STORAGE_BACKEND_JSON, AppConfig
from contracts.notifications import Notifier
from contracts.state import Settings
from runtime import (
    BackgroundRuntime,
    DisplayObserver,
    DisplayUpdate,
    FanoutNotifier,
    LoggingNotifier,
)
from server import ServerConfigurationError, StateServer, StateServerConfig
from storage import JsonFileStore, MemoryStore, StateStore, StoreError


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("pomodoro_app")


def setup_signal_handlers(stop_event: threading.Event) -> None:
    """Set up graceful shutdown on SIGTERM and SIGINT."""

    def signal_handler(signum: int, frame) -> None:
        signal_name = signal.Signals(signum).name
        logging.getLogger("pomodoro_app").info("%s received, stopping...", signal_name)
        stop_event.set()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


def build_store(app_config: AppConfig) -> StateStore:
    if app_config.storage.backend == STORAGE_BACKEND_JSON:
        return JsonFileStore(
            app_config.storage.path,
            logger=logging.getLogger("storage"),
        )
    return MemoryStore(logger=logging.getLogger("storage"))


def _format_display(seconds: float) -> str:
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


def main() -> int:
    """Run the background timer and alarm service."""
    logger = setup_logging(level=logging.INFO)

    try:
        config_path = resolve_config_path()
        app_config = load_app_config()
    except AppConfigurationError as error:
        logger.error("App configuration error: %s", error)
        return 1

    logging.getLogger().setLevel(app_config.logging.level)
    if app_config.source_file:
        logger.info("Loaded runtime config: %s", config_path)
    else:
        logger.info("No config file at %s, using built-in defaults", config_path)

    try:
        store = build_store(app_config)
    except StoreError as error:
        logger.error("State store error: %s", error)
        return 1

    notifiers: list[Notifier] = [LoggingNotifier(logger=logging.getLogger("notifications"))]

    state_server: Optional[StateServer] = None
    try:
        server_config = StateServerConfig.from_settings(app_config.server)
    except ServerConfigurationError as error:
        logger.error("State server configuration error: %s", error)
        return 1

    if server_config.enabled:
        try:
            state_server = StateServer(
                config=server_config,
                store=store,
                logger=logging.getLogger("state_server"),
            )
            logger.info("Starting state server...")
            state_server.start(timeout_seconds=5.0)
            notifiers.append(state_server)
        except Exception as error:
            logger.error("State server startup failed: %s", error)
            logger.warning("Continuing without state server.")
            state_server = None

    runtime = BackgroundRuntime(
        store,
        initial_settings=Settings(**asdict(app_config.timer)),
        notifier=FanoutNotifier(notifiers, logger=logging.getLogger("notifications")),
        max_wait_seconds=app_config.wakeups.max_wait_seconds,
        logger=logging.getLogger("runtime"),
    )

    def log_display(update: DisplayUpdate) -> None:
        if update.source != "push":
            return
        logger.info(
            "Timer %s (%s, %s): %s",
            update.state.status,
            update.state.mode,
            update.state.timer_type,
            _format_display(update.display_seconds),
        )

    observer = DisplayObserver(
        runtime.repository,
        log_display,
        poll_interval_seconds=app_config.storage.poll_interval_seconds,
        logger=logging.getLogger("observer"),
    )

    stop_event = threading.Event()
    setup_signal_handlers(stop_event)

    try:
        runtime.start()
        observer.start()
        logger.info("Ready! Waiting for timer and alarm wake-ups ...")

        while not stop_event.wait(app_config.storage.poll_interval_seconds):
            if isinstance(store, JsonFileStore):
                try:
                    store.refresh()
                except StoreError as error:
                    logger.warning("Failed to refresh state file: %s", error)

            if not runtime.is_running:
                logger.error("Wake-up dispatcher stopped unexpectedly")
                return 1

        return 0

    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return 0

    except StoreError as error:
        logger.error("State store error: %s", error, exc_info=True)
        return 1

    finally:
        observer.stop(timeout_seconds=5.0)
        runtime.stop()
        if state_server:
            logger.info("Stopping state server...")
            try:
                state_server.stop(timeout_seconds=5.0)
            except Exception as error:
                logger.error("Error stopping state server: %s", error, exc_info=True)


if __name__ == "__main__":
    sys.exit(main())
