"""Tests for ConnectivityMonitor signal fan-out and page wiring."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from apps.live_chart.core import connectivity
from apps.live_chart.core.connectivity import (
    DEAL_PANEL_CLASS,
    OFFLINE_BADGE_CLASS,
    OFFLINE_BODY_CLASS,
    OFFLINE_EVENT,
    ONLINE_EVENT,
    ConnectivityMonitor,
)


@pytest.fixture()
def fake_ui(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    ui = MagicMock()
    monkeypatch.setattr(connectivity, "ui", ui)
    return ui


def test_signals_reach_handlers_in_order() -> None:
    monitor = ConnectivityMonitor()
    log: list[str] = []
    monitor.on_offline(lambda: log.append("offline-1"))
    monitor.on_offline(lambda: log.append("offline-2"))
    monitor.on_online(lambda: log.append("online"))

    monitor.emit_offline()
    monitor.emit_online()

    assert log == ["offline-1", "offline-2", "online"]
    assert monitor.online is True


def test_repeated_signals_are_not_deduplicated() -> None:
    monitor = ConnectivityMonitor()
    log: list[str] = []
    monitor.on_online(lambda: log.append("online"))

    monitor.emit_online()
    monitor.emit_online()

    assert log == ["online", "online"]


def test_failing_handler_does_not_block_others() -> None:
    monitor = ConnectivityMonitor()
    log: list[str] = []

    def _broken() -> None:
        raise RuntimeError("gone")

    monitor.on_offline(_broken)
    monitor.on_offline(lambda: log.append("ran"))

    monitor.emit_offline()

    assert log == ["ran"]
    assert monitor.online is False


def test_attach_installs_listener_once(fake_ui: MagicMock) -> None:
    monitor = ConnectivityMonitor()

    monitor.attach()
    monitor.attach()

    fake_ui.add_body_html.assert_called_once()
    assert ONLINE_EVENT in fake_ui.add_body_html.call_args.args[0]
    events = [call.args[0] for call in fake_ui.on.call_args_list]
    assert events == [ONLINE_EVENT, OFFLINE_EVENT]


def test_browser_events_drive_monitor(fake_ui: MagicMock) -> None:
    monitor = ConnectivityMonitor()
    log: list[str] = []
    monitor.on_offline(lambda: log.append("offline"))
    monitor.attach()
    handlers: dict[str, Any] = {call.args[0]: call.args[1] for call in fake_ui.on.call_args_list}

    handlers[OFFLINE_EVENT](MagicMock())

    assert log == ["offline"]
    assert monitor.online is False


def test_browser_flags_offline_without_the_server(fake_ui: MagicMock) -> None:
    monitor = ConnectivityMonitor()

    monitor.attach()

    script = fake_ui.add_body_html.call_args.args[0]
    css = fake_ui.add_head_html.call_args.args[0]
    assert f"classList.toggle('{OFFLINE_BODY_CLASS}'" in script
    # The flag is set before the event is queued on the (possibly down) socket
    offline_handler = script.split("addEventListener('offline'", 1)[1]
    assert offline_handler.index("flag(true)") < offline_handler.index(OFFLINE_EVENT)
    assert f"body.{OFFLINE_BODY_CLASS} .{DEAL_PANEL_CLASS} {{ display: none !important; }}" in css
    assert f"body.{OFFLINE_BODY_CLASS} .{OFFLINE_BADGE_CLASS}" in css
