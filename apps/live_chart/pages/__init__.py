"""Pages for the live chart dashboard.

Page modules are imported here so their @ui.page decorators register.
Import page functions directly from submodules:
    from apps.live_chart.pages.dashboard import dashboard
"""

from apps.live_chart.pages import dashboard  # noqa: F401
