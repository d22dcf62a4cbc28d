# src/campus_planner/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_models import StoreEvent

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def run_console_loop(
    state: AppState,
    *,
    read: InputFn = input,
    write: OutputFn = print,
) -> None:
    """
    Interactive REPL over the command registry.

    Plain text (no leading "/") is treated as a search query.
    """
    logger.info("Console started (tasks=%d).", len(state.store.tasks))
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "campus-planner"))
    write(f"[{_ts_local()}] [{app_name}] Use /help for commands, plain text to search, /exit to quit.\n")

    def emit(text: str) -> None:
        write(f"[{_ts_local()}] {text}")

    def on_change(event: StoreEvent, payload: object) -> None:
        logger.debug("Store event %s", event)

    unsubscribe = state.store.subscribe(on_change)
    try:
        while True:
            try:
                user_input = read(">>> ").strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                write("")
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            line = user_input if user_input.startswith("/") else f"/search {user_input}"
            try:
                with state.store.lock:
                    response = command_registry.handle(state, line, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."

            if response is not None:
                write(f"[{_ts_local()}] {response}")
    finally:
        unsubscribe()

    logger.info("Console finished.")
