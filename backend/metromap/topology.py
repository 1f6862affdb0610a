"""Static subway line topology and station lookups.

The topology is produced offline by the data build (one JSON document listing
every line instance with its ordered stations). A flat CSV table with one row
per (line, station) is accepted as well. It is loaded once at startup and
shared read-only by every routing call.
"""

import json
import logging
import math
import os
from typing import Optional

import pandas as pd

from metromap.config import SUBWAY_DATA_PATH
from metromap.models import Station, SubwayLine

logger = logging.getLogger("metromap.topology")

_CSV_COLUMNS = ["line_id", "line_name", "line_color", "seq", "station", "lat", "lng"]


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in km."""
    R = 6371.0
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class LineTopology:
    """Ordered line instances plus a by-name station index."""

    def __init__(self, lines: list[SubwayLine]):
        self.stations: dict[str, Station] = _merge_stations(lines)
        # Every occurrence of a name points at the same merged record
        self.lines: list[SubwayLine] = [
            line.model_copy(update={"stations": [self.stations[s.name] for s in line.stations]})
            for line in lines
        ]
        self._by_id: dict[str, SubwayLine] = {line.id: line for line in self.lines}

    def __len__(self) -> int:
        return len(self.lines)

    def get_line(self, line_id: str) -> Optional[SubwayLine]:
        return self._by_id.get(line_id)

    def get_station(self, name: str) -> Optional[Station]:
        return self.stations.get(name)

    def station_names(self) -> list[str]:
        return list(self.stations.keys())

    def lines_named(self, line_name: str) -> list[SubwayLine]:
        return [line for line in self.lines if line.name == line_name]

    def search_stations(self, query: str, limit: int = 5) -> list[Station]:
        """Search stations by name (case-insensitive partial match).

        Starts-with matches are ranked before contains matches.
        """
        query = (query or "").strip().lower()
        if not query:
            return []

        starts_with: list[Station] = []
        contains: list[Station] = []
        for station in self.stations.values():
            name = station.name.lower()
            if name.startswith(query):
                starts_with.append(station)
            elif query in name:
                contains.append(station)

        return (starts_with + contains)[:limit]

    def find_nearest_station(self, lat: float, lng: float) -> Optional[Station]:
        nearest: Optional[Station] = None
        min_distance = math.inf
        for station in self.stations.values():
            distance = haversine(lat, lng, station.lat, station.lng)
            if distance < min_distance:
                min_distance = distance
                nearest = station
        return nearest


def _merge_stations(lines: list[SubwayLine]) -> dict[str, Station]:
    """One station record per name; line names are unioned across occurrences."""
    first_seen: dict[str, Station] = {}
    served_by: dict[str, list[str]] = {}

    for line in lines:
        for station in line.stations:
            if station.name not in first_seen:
                first_seen[station.name] = station
                served_by[station.name] = []
            names = served_by[station.name]
            for line_name in [*station.lines, line.name]:
                if line_name not in names:
                    names.append(line_name)

    return {
        name: station.model_copy(update={"lines": served_by[name]})
        for name, station in first_seen.items()
    }


def load_topology(path: Optional[str] = None) -> LineTopology:
    """Load the line topology from JSON or CSV.

    A missing or unreadable file yields an empty topology so the service can
    still start; every route lookup will then come back empty.
    """
    path = path or SUBWAY_DATA_PATH

    if not os.path.exists(path):
        logger.error(f"Subway dataset not found: {path}")
        return LineTopology([])

    try:
        if path.lower().endswith(".csv"):
            lines = _load_csv(path)
        else:
            lines = _load_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, pd.errors.ParserError) as e:
        logger.error(f"Failed to read subway dataset {path}: {e}")
        return LineTopology([])

    topology = LineTopology(lines)
    logger.info(f"Loaded topology: {len(topology.lines)} lines, {len(topology.stations)} stations")
    return topology


def _load_json(path: str) -> list[SubwayLine]:
    # The data build may write a UTF-8 BOM
    with open(path, "r", encoding="utf-8-sig") as f:
        raw = json.load(f)

    if isinstance(raw, dict):
        raw = raw.get("lines", [])

    return [SubwayLine.model_validate(item) for item in raw]


def _load_csv(path: str) -> list[SubwayLine]:
    """Read a flat line/station table.

    Columns: line_id, line_name, line_color, seq, station, lat, lng and an
    optional ``lines`` column with "|"-separated line names.
    """
    df = pd.read_csv(path, encoding="utf-8-sig", dtype={"line_id": str, "station": str})

    missing = [c for c in _CSV_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Subway CSV missing columns: {missing}")

    lines: list[SubwayLine] = []
    for line_id, group in df.groupby("line_id", sort=False):
        group = group.sort_values("seq", kind="stable")
        first = group.iloc[0]
        stations = []
        for _, row in group.iterrows():
            served = row.get("lines")
            stations.append(Station(
                name=str(row["station"]).strip(),
                lat=float(row["lat"]),
                lng=float(row["lng"]),
                lines=[s.strip() for s in str(served).split("|") if s.strip()] if pd.notna(served) else [],
            ))
        lines.append(SubwayLine(
            id=str(line_id),
            name=str(first["line_name"]),
            color=str(first["line_color"]) if pd.notna(first["line_color"]) else "#888888",
            stations=stations,
        ))

    return lines
