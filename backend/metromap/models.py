from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Station(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    lat: float
    lng: float
    lines: list[str] = Field(default_factory=list)  # display names of lines serving this station


class SubwayLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # line instance id, e.g. "2" or "2-seongsu"
    name: str  # display name, may be shared by several instances
    color: str = "#888888"
    stations: list[Station] = Field(default_factory=list)

    def hop_indices(self, start: str, end: str) -> Optional[tuple[int, int]]:
        """Sequence indices of a hop from ``start`` to ``end`` on this line.

        A loop or a backtracking branch may list a station twice; the pair of
        occurrences that sit next to each other is preferred, otherwise the
        first occurrence of each. None if either station is not on the line.
        """
        starts = [i for i, s in enumerate(self.stations) if s.name == start]
        ends = [i for i, s in enumerate(self.stations) if s.name == end]
        if not starts or not ends:
            return None

        for i in starts:
            for j in ends:
                if abs(i - j) == 1:
                    return i, j
        return starts[0], ends[0]


class PathResult(BaseModel):
    path: list[str]
    total_weight: float
    transfer_count: int
    hop_lines: list[str] = Field(default_factory=list)  # owning line id of each hop


class Direction(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class ActiveSegment(BaseModel):
    line_id: str
    direction: Direction
    min_index: int
    max_index: int
    boarding_indices: list[int] = Field(default_factory=list)

    @property
    def step(self) -> int:
        return 1 if self.direction == Direction.ASCENDING else -1


class TrainPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    line_id: str
    line_name: str
    status: str = "RUNNING"
    lat: float
    lng: float
    heading_to: str
    station_index: int
    direction: int  # +1 forward along the line's station order, -1 backward


# --- Timeline legs ---


class RideLeg(BaseModel):
    kind: Literal["ride"] = "ride"
    line_id: str
    line_name: str
    line_color: str
    start_station: str
    end_station: str
    stations: list[str]
    station_count: int
    duration_min: float
    headsign: Optional[str] = None  # terminal station in the direction of travel


class WalkLeg(BaseModel):
    kind: Literal["walk"] = "walk"
    station: str
    from_line_id: str
    to_line_id: str
    walk_min: float


RouteLeg = Annotated[Union[RideLeg, WalkLeg], Field(discriminator="kind")]


# --- API payloads ---


class LineSummary(BaseModel):
    id: str
    name: str
    color: str
    station_count: int


class LineDetail(BaseModel):
    id: str
    name: str
    color: str
    stations: list[Station]


class StationSearchResponse(BaseModel):
    stations: list[Station]


class ItineraryRequest(BaseModel):
    waypoints: list[str]


class RoutePlanResponse(BaseModel):
    result: PathResult
    active_segments: dict[str, ActiveSegment]
    legs: list[RouteLeg]
    highlight: dict[str, list[list[float]]]  # line_id -> [[lat, lng], ...]


class TrainsResponse(BaseModel):
    trains: list[TrainPosition]


class RealtimeArrival(BaseModel):
    """One row of the Seoul realtimeStationArrival feed."""

    model_config = ConfigDict(populate_by_name=True)

    subway_id: str = Field(alias="subwayId")  # e.g. "1002" for Line 2
    updn_line: str = Field("", alias="updnLine")  # 상행/하행 or 내선/외선
    train_line_name: str = Field("", alias="trainLineNm")  # destination info
    station_name: str = Field("", alias="statnNm")
    arrival_message: str = Field("", alias="arvlMsg2")
    current_location: str = Field("", alias="arvlMsg3")
    arrival_code: str = Field("", alias="arvlCd")
    train_status: str = Field("", alias="btrainSttus")  # express / normal
    seconds_to_arrival: str = Field("0", alias="barvlDt")
    received_at: str = Field("", alias="recptnDt")


class ArrivalsResponse(BaseModel):
    station: str
    arrivals: list[RealtimeArrival]
    is_mock: bool = False
