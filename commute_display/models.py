"""Domain types shared by the data, logic and rendering layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

BUS = "bus"
TRAIN = "train"
FERRY = "ferry"
BIKE = "bike"
WALK = "walk"
DRIVE = "drive"

TRANSIT_KINDS = (BUS, TRAIN)
POINT_TO_POINT_KINDS = (BIKE, WALK, DRIVE)

FERRY_ANACORTES = "anacortes"
FERRY_ORCAS = "orcas"
FERRY_DIRECTIONS = (FERRY_ANACORTES, FERRY_ORCAS)


@dataclass(frozen=True)
class BusStop:
    """Bus stop tracked by exact route number."""

    name: str
    origin: str
    destination: str
    route_filter: str = "801"
    cache_file: str | None = None

    @property
    def kind(self) -> str:
        return BUS


@dataclass(frozen=True)
class TrainStop:
    """Train stop tracked by line or agency name."""

    name: str
    origin: str
    destination: str
    route_filter: str = "Caltrain"
    cache_file: str | None = None

    @property
    def kind(self) -> str:
        return TRAIN


@dataclass(frozen=True)
class FerryStop:
    """Ferry terminal driven by the static timetable."""

    name: str
    direction: str
    location: str

    @property
    def kind(self) -> str:
        return FERRY


@dataclass(frozen=True)
class PointToPointStop:
    """Bike, walk or drive destination; only a travel duration is shown."""

    name: str
    mode: str
    origin: str
    destination: str
    cache_file: str | None = None
    origin_is_home: bool = False

    @property
    def kind(self) -> str:
        return self.mode


StopConfig = Union[BusStop, TrainStop, FerryStop, PointToPointStop]


@dataclass(frozen=True)
class ArrivalCandidate:
    """One normalized departure event under consideration for a stop."""

    stop_name: str
    arrival_instant: datetime
    departure_instant: datetime | None
    headsign: str
    line_name: str
    is_live: bool = False


@dataclass(frozen=True)
class StopResult:
    """Display record for one stop, rebuilt from scratch every refresh."""

    stop: StopConfig
    candidates: tuple[ArrivalCandidate, ...] = ()
    estimated_duration_minutes: int | None = None
    next_arrival_instant: datetime | None = None
    last_stop_instant: datetime | None = None
    is_next_near_last: bool = False
    source: str | None = None
    error: str | None = None

    @property
    def kind(self) -> str:
        return self.stop.kind

    @property
    def next_is_live(self) -> bool:
        if self.next_arrival_instant is None:
            return False
        return any(
            c.is_live and c.arrival_instant == self.next_arrival_instant for c in self.candidates
        )

    @classmethod
    def empty(cls, stop: StopConfig, error: str | None = None, source: str | None = None) -> StopResult:
        """Null-filled result used whenever a stop cannot be resolved."""
        return cls(stop=stop, source=source, error=error)


__all__ = [
    "BUS",
    "TRAIN",
    "FERRY",
    "BIKE",
    "WALK",
    "DRIVE",
    "TRANSIT_KINDS",
    "POINT_TO_POINT_KINDS",
    "FERRY_ANACORTES",
    "FERRY_ORCAS",
    "FERRY_DIRECTIONS",
    "BusStop",
    "TrainStop",
    "FerryStop",
    "PointToPointStop",
    "StopConfig",
    "ArrivalCandidate",
    "StopResult",
]
