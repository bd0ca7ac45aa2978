"""Static page shell: header, main column, footer."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from nicegui import ui

from apps.live_chart import config

BACKGROUND = "#121212"
SURFACE = "#1E1E1E"


@contextmanager
def page_shell(title: str = config.PAGE_TITLE) -> Iterator[ui.column]:
    """Render header and footer around the main column yielded to the caller."""
    ui.dark_mode().enable()
    ui.query("body").style(f"background-color: {BACKGROUND}")

    with ui.header().classes("items-center justify-between px-6").style(
        f"background-color: {SURFACE}"
    ):
        ui.label(title).classes("text-xl font-bold")
        ui.link("GitHub", config.GITHUB_URL, new_tab=True).classes("text-gray-300")

    with ui.row().classes("w-full no-wrap"):
        ui.element("div").classes("flex-1")  # left sidebar
        with ui.column().classes("w-full max-w-5xl gap-4") as main:
            yield main
        ui.element("div").classes("flex-1")  # right sidebar

    with ui.footer().classes("justify-center").style(f"background-color: {SURFACE}"):
        ui.label(config.FOOTER_TEXT).classes("text-sm text-gray-400")


__all__ = ["page_shell"]
