# tests/test_console.py

from __future__ import annotations

from collections.abc import Iterable

from campus_planner.connectors import console_connector
from campus_planner.connectors.console_connector import run_console_loop


def _reader(lines: Iterable[str]):
    it = iter(lines)

    def read(prompt: str) -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return read


def test_console_routes_commands_and_plain_text(state) -> None:
    out: list[str] = []
    run_console_loop(
        state,
        read=_reader(['/add title="Study for exam" date=2025-09-29 duration=90 tag=Study', "", "exam", "/nope"]),
        write=out.append,
    )
    text = "\n".join(out)
    assert "Added:" in text
    assert "1 match(es):" in text
    assert "Unknown command: /nope." in text
    assert state.last_query == "exam"


def test_console_exit_stops_reading(state) -> None:
    out: list[str] = []
    run_console_loop(state, read=_reader(["/exit", "/add never"]), write=out.append)
    assert not any("Usage" in line for line in out)


def test_console_unsubscribes_on_exit(state, monkeypatch) -> None:
    real_subscribe = state.store.subscribe
    released: list[bool] = []

    def tracking_subscribe(callback):
        unsubscribe = real_subscribe(callback)

        def wrapped() -> None:
            released.append(True)
            unsubscribe()

        return wrapped

    monkeypatch.setattr(state.store, "subscribe", tracking_subscribe)
    run_console_loop(state, read=_reader([]), write=lambda _: None)
    assert released == [True]


def test_console_survives_handler_crash(state, monkeypatch) -> None:
    class Boom:
        def handle(self, state, line, emit=None):
            raise RuntimeError("boom")

    monkeypatch.setattr(console_connector, "command_registry", Boom())
    out: list[str] = []
    run_console_loop(state, read=_reader(["/stats", "/stats"]), write=out.append)
    assert sum("Internal error" in line for line in out) == 2
