"""Multi-waypoint itineraries and their timeline legs."""

import logging
from typing import Optional, Union

from metromap.config import HOP_WEIGHT, TRANSFER_WALK_MIN
from metromap.graph import find_route
from metromap.models import PathResult, RideLeg, WalkLeg
from metromap.topology import LineTopology

logger = logging.getLogger("metromap.itinerary")


def clean_waypoints(raw: list[str]) -> list[str]:
    """Trim entries and drop blanks, keeping order."""
    return [w.strip() for w in raw if w and w.strip()]


def plan_itinerary(waypoints: list[str], topology: LineTopology) -> Optional[PathResult]:
    """Chain shortest paths through every waypoint in order.

    Returns None if any leg has no route; partial chains are discarded.
    Transfer counts are summed per leg, so a line change that happens exactly
    at a waypoint is not counted.
    """
    if len(waypoints) < 2:
        raise ValueError("An itinerary needs at least two waypoints")

    full_path: list[str] = []
    hop_lines: list[str] = []
    total_weight = 0.0
    total_transfers = 0

    for i, (start, end) in enumerate(zip(waypoints, waypoints[1:])):
        result = find_route(start, end, topology)
        if result is None:
            logger.info(f"Itinerary leg {i + 1} has no route: {start} -> {end}")
            return None

        # Later legs start where the previous one ended
        full_path.extend(result.path if i == 0 else result.path[1:])
        hop_lines.extend(result.hop_lines)
        total_weight += result.total_weight
        total_transfers += result.transfer_count

    return PathResult(
        path=full_path,
        total_weight=total_weight,
        transfer_count=total_transfers,
        hop_lines=hop_lines,
    )


def describe_legs(result: PathResult, topology: LineTopology) -> list[Union[RideLeg, WalkLeg]]:
    """Split a path into ride legs (one per run on a line) and walk legs between them."""
    legs: list[Union[RideLeg, WalkLeg]] = []
    if not result.hop_lines:
        return legs

    run_start = 0
    for hop in range(1, len(result.hop_lines) + 1):
        at_end = hop == len(result.hop_lines)
        if not at_end and result.hop_lines[hop] == result.hop_lines[run_start]:
            continue

        line_id = result.hop_lines[run_start]
        stations = result.path[run_start:hop + 1]
        legs.append(_ride_leg(line_id, stations, topology))

        if not at_end:
            legs.append(WalkLeg(
                station=result.path[hop],
                from_line_id=line_id,
                to_line_id=result.hop_lines[hop],
                walk_min=TRANSFER_WALK_MIN,
            ))
        run_start = hop

    return legs


def _ride_leg(line_id: str, stations: list[str], topology: LineTopology) -> RideLeg:
    line = topology.get_line(line_id)
    headsign = None
    if line is not None and len(stations) >= 2:
        indices = line.hop_indices(stations[0], stations[1])
        if indices is not None:
            start_idx, end_idx = indices
            terminal = line.stations[-1] if end_idx > start_idx else line.stations[0]
            headsign = terminal.name

    return RideLeg(
        line_id=line_id,
        line_name=line.name if line else line_id,
        line_color=line.color if line else "#888888",
        start_station=stations[0],
        end_station=stations[-1],
        stations=stations,
        station_count=len(stations) - 1,
        duration_min=(len(stations) - 1) * HOP_WEIGHT,
        headsign=headsign,
    )
