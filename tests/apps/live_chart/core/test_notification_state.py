"""Tests for the single-slot NotificationState."""

from __future__ import annotations

import pytest

from apps.live_chart.core.models import HIDDEN_NOTIFICATION, NotificationKind, NotificationRecord
from apps.live_chart.core.notification_state import (
    TEXT_API_UNAVAILABLE,
    TEXT_STREAM_ERROR,
    NotificationState,
)


class TestNotificationState:
    def test_starts_hidden(self) -> None:
        state = NotificationState()

        assert state.visible is False
        assert state.text == ""
        assert state.record == HIDDEN_NOTIFICATION

    def test_show_uses_standard_text(self) -> None:
        state = NotificationState()

        state.show(NotificationKind.SNAPSHOT_FAILURE)

        assert state.visible is True
        assert state.text == TEXT_API_UNAVAILABLE
        assert state.is_showing(NotificationKind.SNAPSHOT_FAILURE)

    def test_later_show_replaces_earlier(self) -> None:
        state = NotificationState()
        state.show(NotificationKind.SNAPSHOT_FAILURE)

        state.show(NotificationKind.STREAM_FAILURE)

        assert state.text == TEXT_STREAM_ERROR
        assert not state.is_showing(NotificationKind.SNAPSHOT_FAILURE)

    def test_hide_clears_text(self) -> None:
        state = NotificationState()
        state.show(NotificationKind.STREAM_FAILURE, "custom")

        state.hide()

        assert state.visible is False
        assert state.text == ""

    def test_show_none_kind_rejected(self) -> None:
        with pytest.raises(ValueError, match="NONE"):
            NotificationState().show(NotificationKind.NONE)

    def test_hidden_record_with_text_rejected(self) -> None:
        with pytest.raises(ValueError, match="Hidden notification"):
            NotificationRecord(visible=False, text="stale")

    def test_listeners_called_on_change_only(self) -> None:
        state = NotificationState()
        seen: list[NotificationRecord] = []
        state.subscribe(seen.append)

        state.show(NotificationKind.STREAM_FAILURE)
        state.show(NotificationKind.STREAM_FAILURE)
        state.hide()

        assert [r.visible for r in seen] == [True, False]

    def test_unsubscribe_stops_notifications(self) -> None:
        state = NotificationState()
        seen: list[NotificationRecord] = []
        unsubscribe = state.subscribe(seen.append)

        unsubscribe()
        unsubscribe()
        state.show(NotificationKind.SNAPSHOT_FAILURE)

        assert seen == []

    def test_failing_listener_does_not_block_others(self) -> None:
        state = NotificationState()
        seen: list[NotificationRecord] = []

        def _broken(_: NotificationRecord) -> None:
            raise RuntimeError("banner gone")

        state.subscribe(_broken)
        state.subscribe(seen.append)

        state.show(NotificationKind.SNAPSHOT_FAILURE)

        assert len(seen) == 1
        assert state.visible is True
