"""Domain and wire models for the live chart session."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MarkerSide = Literal["buy", "sell"]


@dataclass(frozen=True)
class DataPoint:
    """Single price point on the primary series."""

    x: int  # Unix timestamp, milliseconds
    y: float


@dataclass(frozen=True)
class MarkerPoint:
    """User annotation on a marker series. Carries no price."""

    x: int  # Unix timestamp, milliseconds


@dataclass
class SeriesCollection:
    """Primary price series plus the buy and sell marker series.

    The three series are always created together, so marker series exist
    exactly when the primary series does.
    """

    primary: list[DataPoint]
    buy_markers: list[MarkerPoint] = field(default_factory=list)
    sell_markers: list[MarkerPoint] = field(default_factory=list)

    def markers(self, side: MarkerSide) -> list[MarkerPoint]:
        return self.buy_markers if side == "buy" else self.sell_markers


class NotificationKind(Enum):
    """What a visible notification is about.

    Recovery rules key off the kind, never the display text.
    """

    NONE = "none"
    SNAPSHOT_FAILURE = "snapshot_failure"
    STREAM_FAILURE = "stream_failure"


@dataclass(frozen=True)
class NotificationRecord:
    """What the notification banner shows. Hidden records have no text."""

    visible: bool = False
    kind: NotificationKind = NotificationKind.NONE
    text: str = ""

    def __post_init__(self) -> None:
        if not self.visible and (self.text or self.kind is not NotificationKind.NONE):
            raise ValueError("Hidden notification must have no text and kind NONE")


HIDDEN_NOTIFICATION = NotificationRecord()


@dataclass(frozen=True)
class Session:
    """Per-page session owned by the session controller."""

    symbol: str
    initialized: bool = False
    subscribed: bool = False


class AggTrade(BaseModel):
    """Binance aggregated trade.

    Same shape for ``GET /api/v3/aggTrades`` items and ``<symbol>@aggTrade``
    stream payloads; only the fields the chart needs are declared.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    trade_time: int = Field(alias="T", ge=0)
    price: float = Field(alias="p", gt=0)

    def to_point(self) -> DataPoint:
        return DataPoint(x=self.trade_time, y=self.price)


__all__ = [
    "AggTrade",
    "DataPoint",
    "HIDDEN_NOTIFICATION",
    "MarkerPoint",
    "MarkerSide",
    "NotificationKind",
    "NotificationRecord",
    "SeriesCollection",
    "Session",
]
