"""Which parts of which lines a computed route uses.

The rendering layer highlights the covered part of each line and shows only
the trains that matter for the trip: trains already inside the covered range,
or a few stops away from a station where the traveler boards.
"""

import logging
from typing import Iterable

from metromap.config import APPROACH_STOPS
from metromap.models import ActiveSegment, Direction, PathResult, TrainPosition
from metromap.topology import LineTopology

logger = logging.getLogger("metromap.active_segments")


def derive_active_segments(result: PathResult, topology: LineTopology) -> dict[str, ActiveSegment]:
    """Map line instance id -> the segment of that line the path travels.

    Lines are matched by display name first, then every instance with that
    name containing both stations of a hop is marked. The start index of
    every hop is a boarding index, so a line reused by two disjoint parts of
    the path ends up with a widened range and boarding points on both.
    """
    segments: dict[str, ActiveSegment] = {}

    for start, end in zip(result.path, result.path[1:]):
        if start == end:
            # In-place transfer between two legs
            continue

        start_station = topology.get_station(start)
        end_station = topology.get_station(end)
        if start_station is None or end_station is None:
            continue

        common = [name for name in start_station.lines if name in end_station.lines]

        for line_name in common:
            for line in topology.lines_named(line_name):
                indices = line.hop_indices(start, end)
                if indices is None:
                    continue

                start_idx, end_idx = indices
                direction = Direction.ASCENDING if end_idx > start_idx else Direction.DESCENDING
                low, high = min(start_idx, end_idx), max(start_idx, end_idx)
                segment = segments.get(line.id)

                if segment is None:
                    segment = ActiveSegment(
                        line_id=line.id,
                        direction=direction,
                        min_index=low,
                        max_index=high,
                    )
                    segments[line.id] = segment
                else:
                    segment.direction = direction
                    segment.min_index = min(segment.min_index, low)
                    segment.max_index = max(segment.max_index, high)

                if start_idx not in segment.boarding_indices:
                    segment.boarding_indices.append(start_idx)

    return segments


def is_train_relevant(
    train: TrainPosition,
    segments: dict[str, ActiveSegment],
    approach_stops: int = APPROACH_STOPS,
) -> bool:
    """True if the train runs the route's direction inside or toward its segment."""
    segment = segments.get(train.line_id)
    if segment is None or train.direction != segment.step:
        return False

    if segment.min_index <= train.station_index <= segment.max_index:
        return True

    for boarding in segment.boarding_indices:
        # Positive when the boarding station is still ahead of the train
        stops_away = (boarding - train.station_index) * train.direction
        if 0 <= stops_away <= approach_stops:
            return True

    return False


def filter_trains(trains: Iterable[TrainPosition], segments: dict[str, ActiveSegment]) -> list[TrainPosition]:
    return [t for t in trains if is_train_relevant(t, segments)]


def highlight_polylines(segments: dict[str, ActiveSegment], topology: LineTopology) -> dict[str, list[list[float]]]:
    """[lat, lng] coordinates of each active line's covered range."""
    polylines: dict[str, list[list[float]]] = {}
    for line_id, segment in segments.items():
        line = topology.get_line(line_id)
        if line is None:
            continue
        covered = line.stations[segment.min_index:segment.max_index + 1]
        polylines[line_id] = [[s.lat, s.lng] for s in covered]
    return polylines
